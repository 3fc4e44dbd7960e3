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
Row records for the processed-profile tables.

Each row type declares COLUMNS, the (json column, attribute) pairs in output
order, and EMPTY, the schema columns this converter never fills. The viewer
requires those to exist, so they are written as empty arrays after `length`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Dict, Generic, List, Optional, Tuple, Type, TypeVar

# -----------------------------
# Rows
# -----------------------------

RESOURCE_TYPE_LIBRARY = 2


class Phase(IntEnum):
  INSTANT = 0
  INTERVAL = 1
  INTERVAL_START = 2
  INTERVAL_END = 3


@dataclass
class StackRow:
  frame: int
  prefix: Optional[int]
  category: int = 0
  subcategory: int = 0

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (
    ("frame", "frame"), ("prefix", "prefix"), ("category", "category"), ("subcategory", "subcategory"))
  EMPTY: ClassVar[Tuple[str, ...]] = ()


@dataclass
class FrameRow:
  func: int
  category: int = 0
  subcategory: int = 0

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (
    ("func", "func"), ("category", "category"), ("subcategory", "subcategory"))
  EMPTY: ClassVar[Tuple[str, ...]] = (
    "address", "nativeSymbol", "innerWindowID", "implementation", "line", "column", "optimizations")


@dataclass
class FuncRow:
  name: int
  resource: int = 0
  file_name: Optional[int] = None

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (
    ("name", "name"), ("resource", "resource"), ("fileName", "file_name"))
  EMPTY: ClassVar[Tuple[str, ...]] = ("isJS", "relevantForJS", "lineNumber", "columnNumber")


@dataclass
class ResourceRow:
  name: int
  type: int = RESOURCE_TYPE_LIBRARY

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (("name", "name"), ("type", "type"))
  EMPTY: ClassVar[Tuple[str, ...]] = ("lib", "host")


@dataclass
class SampleRow:
  stack: Optional[int]
  time: float
  event_delay: float

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (
    ("stack", "stack"), ("time", "time"), ("eventDelay", "event_delay"))
  EMPTY: ClassVar[Tuple[str, ...]] = ()


@dataclass
class MarkerRow:
  name: int
  start_time: float
  end_time: Optional[float] = None
  phase: Phase = Phase.INSTANT
  category: int = 0
  data: Optional[Dict[str, Any]] = None

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (
    ("data", "data"), ("name", "name"), ("startTime", "start_time"), ("endTime", "end_time"),
    ("phase", "phase"), ("category", "category"))
  EMPTY: ClassVar[Tuple[str, ...]] = ()


@dataclass
class CounterSample:
  time: float
  number: int
  count: int

  COLUMNS: ClassVar[Tuple[Tuple[str, str], ...]] = (("time", "time"), ("number", "number"), ("count", "count"))
  EMPTY: ClassVar[Tuple[str, ...]] = ()


# -----------------------------
# Table
# -----------------------------

R = TypeVar("R")


class Table(Generic[R]):
  """Append-only list of rows, exported column-wise."""

  def __init__(self, row_type: Type[R]):
    self.row_type = row_type
    self.rows: List[R] = []

  def __len__(self) -> int:
    return len(self.rows)

  def __getitem__(self, index: int) -> R:
    return self.rows[index]

  def push(self, row: R) -> int:
    if not isinstance(row, self.row_type):
      raise TypeError(f"expected {self.row_type.__name__}, got {type(row).__name__}")
    self.rows.append(row)
    return len(self.rows) - 1

  def column(self, name: str) -> List[Any]:
    return [getattr(r, name) for r in self.rows]

  def to_json(self) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for col, attr in self.row_type.COLUMNS:
      out[col] = self.column(attr)
    out["length"] = len(self.rows)
    for col in self.row_type.EMPTY:
      out[col] = []
    return out
