# Copyright © 2019-2023
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import struct

import numpy as np

from .errors import TruncatedInput

LITTLE = "<"
BIG = ">"


class ByteCursor:
  """
  Sequential reader over a byte buffer.

  Every read checks the remaining length first and raises TruncatedInput
  instead of returning a short value.
  """

  def __init__(self, data: bytes, byteorder: str = LITTLE, offset: int = 0):
    if byteorder not in (LITTLE, BIG):
      raise ValueError(f"byteorder must be '<' or '>', got {byteorder!r}")
    self.data = bytes(data)
    self.byteorder = byteorder
    self.offset = offset
    self._u16 = struct.Struct(byteorder + "H")
    self._u32 = struct.Struct(byteorder + "I")
    self._i32 = struct.Struct(byteorder + "i")
    self._u64 = struct.Struct(byteorder + "Q")
    self._u32_dtype = np.dtype(byteorder + "u4")

  def remaining(self) -> int:
    return len(self.data) - self.offset

  def _bump(self, n: int, what: str) -> int:
    avail = self.remaining()
    if n > avail:
      raise TruncatedInput(what, self.offset, n, max(avail, 0))
    o = self.offset
    self.offset += n
    return o

  def u16(self) -> int:
    return self._u16.unpack_from(self.data, self._bump(2, "u16"))[0]

  def u32(self) -> int:
    return self._u32.unpack_from(self.data, self._bump(4, "u32"))[0]

  def i32(self) -> int:
    return self._i32.unpack_from(self.data, self._bump(4, "i32"))[0]

  def u64(self) -> int:
    return self._u64.unpack_from(self.data, self._bump(8, "u64"))[0]

  def raw(self, n: int) -> bytes:
    o = self._bump(n, f"{n}-byte block")
    return self.data[o:o + n]

  def u32_array(self, count: int) -> np.ndarray:
    """Read `count` u32 values as a native-order numpy array."""
    o = self._bump(4 * count, f"{count} u32 value(s)")
    if count == 0:
      return np.empty(0, dtype=np.uint32)
    arr = np.frombuffer(self.data, dtype=self._u32_dtype, count=count, offset=o)
    return arr.astype(np.uint32)

  def cstr(self) -> str:
    start = self.offset
    end = self.data.find(b"\x00", start)
    if end < 0:
      raise TruncatedInput("string terminator", start, self.remaining() + 1, self.remaining())
    self.offset = end + 1
    return self.data[start:end].decode("utf-8", errors="replace")
