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
Category taxonomy and synthetic frame ids.

A frame id with SYNTHETIC_FLAG set is not a method: it carries a category in
bits 0-15 and a subcategory in bits 16-29. The sampler uses them to show
blocked/idle time as an extra leaf frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

SYNTHETIC_FLAG = 0x4000_0000
CATEGORY_MASK = 0xFFFF
SUBCATEGORY_MASK = 0x3FFF

# JVMTI thread state bits
STATE_RUNNABLE = 0x0004
STATE_WAITING_INDEFINITELY = 0x0010
STATE_WAITING_WITH_TIMEOUT = 0x0020
STATE_SLEEPING = 0x0040
STATE_WAITING = 0x0080
STATE_IN_OBJECT_WAIT = 0x0100
STATE_PARKED = 0x0200
STATE_BLOCKED_ON_MONITOR_ENTER = 0x0400

JAVA = 0

# checked in order, first hit wins; index is the Idle subcategory
IDLE_REASONS = (
  (STATE_WAITING_INDEFINITELY, "Waiting indefinitely"),
  (STATE_WAITING_WITH_TIMEOUT, "Waiting with timeout"),
  (STATE_IN_OBJECT_WAIT, "Object wait"),
  (STATE_PARKED, "Parked"),
  (STATE_SLEEPING, "Sleeping"),
)


def pack_category(category: int, subcategory: int) -> int:
  if not 0 <= category <= CATEGORY_MASK:
    raise ValueError(f"category out of range: {category}")
  if not 0 <= subcategory <= SUBCATEGORY_MASK:
    raise ValueError(f"subcategory out of range: {subcategory}")
  return SYNTHETIC_FLAG | (subcategory << 16) | category


def unpack_category(method_id: int) -> Tuple[int, int]:
  if method_id & SYNTHETIC_FLAG:
    return method_id & CATEGORY_MASK, (method_id >> 16) & SUBCATEGORY_MASK
  return JAVA, 0


def is_synthetic(method_id: int) -> bool:
  return bool(method_id & SYNTHETIC_FLAG)


@dataclass(frozen=True)
class Category:
  name: str
  color: str
  subcategories: Tuple[str, ...]

  def to_json(self) -> Dict[str, Any]:
    return {"name": self.name, "color": self.color, "subcategories": list(self.subcategories)}


@dataclass(frozen=True)
class Taxonomy:
  categories: Tuple[Category, ...]
  blocked: int
  idle: int
  other: int

  def __len__(self) -> int:
    return len(self.categories)

  def category(self, index: int) -> Category:
    return self.categories[index]

  def classify(self, state: int) -> Tuple[int, int]:
    if state & STATE_RUNNABLE:
      return JAVA, 0
    if state & STATE_BLOCKED_ON_MONITOR_ENTER:
      return self.blocked, 0
    if state & STATE_WAITING:
      for sub, (bit, _) in enumerate(IDLE_REASONS, start=1):
        if state & bit:
          return self.idle, sub
      return self.idle, 0
    return self.other, 0

  def to_json(self) -> List[Dict[str, Any]]:
    return [c.to_json() for c in self.categories]


def _category(name: str, color: str, subs: Sequence[str] = ()) -> Category:
  # "Other" must be subcategory 0
  return Category(name=name, color=color, subcategories=("Other",) + tuple(subs))


def build_taxonomy() -> Taxonomy:
  cats = (
    _category("Java", "blue"),  # must be 0
    _category("Blocked", "red"),
    _category("Idle", "transparent", [name for _, name in IDLE_REASONS]),
    _category("Other", "grey"),
  )
  return Taxonomy(categories=cats, blocked=1, idle=2, other=3)
