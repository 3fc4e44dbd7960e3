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

"""
Outer "RP" container: magic, header length, two zstd sections.

  bytes 0-1   magic 'RP' (u16 0x5250 in the writer's native order)
  bytes 2-9   u64 compressed header length
  bytes 10..  compressed header, then compressed samples up to EOF
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

import zstandard

from .cursor import BIG, LITTLE, ByteCursor
from .errors import MalformedContainer, TruncatedInput

MAGIC = (ord("R") << 8) | ord("P")
PREAMBLE_SIZE = 10

Decompressor = Callable[[bytes], bytes]


def zstd_decompress(data: bytes) -> bytes:
  # The sampler streams without a content size, so use a decompressobj
  # rather than the one-shot API.
  return zstandard.ZstdDecompressor().decompressobj().decompress(data)


def probe_byteorder(data: bytes) -> str:
  if len(data) < 2:
    raise MalformedContainer(f"input too short for magic ({len(data)} byte(s))", 0)
  le = ByteCursor(data, LITTLE).u16()
  if le == MAGIC:
    return LITTLE
  if ByteCursor(data, BIG).u16() == MAGIC:
    return BIG
  raise MalformedContainer(f"bad magic: expected 0x{MAGIC:04x}, found 0x{le:04x} (little-endian)", 0)


def _inflate(decompress: Decompressor, blob: bytes, section: str, offset: int) -> bytes:
  try:
    return decompress(blob)
  except zstandard.ZstdError as e:
    raise MalformedContainer(f"{section} section failed to decompress: {e}", offset) from e


def split_container(data: bytes, decompress: Optional[Decompressor] = None) -> Tuple[str, bytes, bytes]:
  """Returns (byteorder, header section, sample section), both decompressed."""
  decompress = decompress or zstd_decompress
  byteorder = probe_byteorder(data)

  c = ByteCursor(data, byteorder, offset=2)
  header_len = c.u64()
  header_end = PREAMBLE_SIZE + header_len
  if header_end > len(data):
    raise TruncatedInput("header section", PREAMBLE_SIZE, header_len, len(data) - PREAMBLE_SIZE)

  header = _inflate(decompress, bytes(data[PREAMBLE_SIZE:header_end]), "header", PREAMBLE_SIZE)
  samples = _inflate(decompress, bytes(data[header_end:]), "sample", header_end)
  return byteorder, header, samples
