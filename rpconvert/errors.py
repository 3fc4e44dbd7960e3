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

from typing import Optional


class TraceError(Exception):
  """Base class for every fatal decode failure."""

  def __init__(self, message: str, offset: Optional[int] = None):
    if offset is not None:
      message = f"{message} (at offset {offset})"
    super().__init__(message)
    self.offset = offset


class MalformedContainer(TraceError):
  pass


class TruncatedInput(TraceError):
  def __init__(self, what: str, offset: int, wanted: int, available: int):
    super().__init__(f"truncated input reading {what}: wanted {wanted} byte(s), {available} available", offset)
    self.wanted = wanted
    self.available = available


class UnknownMarkerTag(TraceError):
  def __init__(self, tag: int, offset: int):
    super().__init__(f"unknown marker tag 0x{tag:x}", offset)
    self.tag = tag


class InvalidMetadata(TraceError):
  pass


class InvalidFrame(TraceError):
  """A synthetic frame id naming a category or subcategory outside the taxonomy."""

  def __init__(self, method_id: int, reason: str, offset: Optional[int] = None):
    super().__init__(f"frame id 0x{method_id:08x} {reason}", offset)
    self.method_id = method_id
