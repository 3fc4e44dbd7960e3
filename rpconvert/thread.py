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

from typing import Dict, List, Optional, Tuple

from .categories import Taxonomy, is_synthetic, unpack_category
from .errors import InvalidFrame
from .header import Header
from .tables import (
  FrameRow,
  FuncRow,
  MarkerRow,
  ResourceRow,
  SampleRow,
  StackRow,
  Table,
)

StackKey = Tuple[int, ...]


class ThreadModel:
  """
  Per-thread interning tables.

  Every id handed out here (stack, frame, func, string) is an index into this
  thread's own tables; two threads never share ids. Nothing is ever evicted.
  """

  def __init__(self, name: str, header: Header, taxonomy: Taxonomy):
    self.name = name
    self.header = header
    self.taxonomy = taxonomy

    self.stack_table: Table[StackRow] = Table(StackRow)
    self.frame_table: Table[FrameRow] = Table(FrameRow)
    self.func_table: Table[FuncRow] = Table(FuncRow)
    self.resource_table: Table[ResourceRow] = Table(ResourceRow)
    self.samples: Table[SampleRow] = Table(SampleRow)
    self.markers: Table[MarkerRow] = Table(MarkerRow)
    self.string_array: List[str] = []

    self.time = 0.0

    self._stacks: Dict[StackKey, int] = {}
    self._nodes: Dict[Tuple[Optional[int], int], int] = {}
    self._frames: Dict[int, int] = {}
    self._funcs: Dict[str, int] = {}
    self._strings: Dict[str, int] = {}

    # every func points at resource 0
    self.resource_table.push(ResourceRow(name=self.intern_string("")))

  def intern_stack(self, frames: StackKey, offset: Optional[int] = None) -> Optional[int]:
    """
    `frames` runs root first, leaf last. Missing prefixes are created root
    first, so a parent id is always lower than its children's. Trie nodes are
    keyed by (prefix id, frame id); full keys are kept only for requested
    stacks.

    `offset` is where the frames were read from, for error reports.
    """
    if not frames:
      return None
    sid = self._stacks.get(frames)
    if sid is not None:
      return sid

    prefix: Optional[int] = None
    for method_id in frames:
      node = self._nodes.get((prefix, method_id))
      if node is None:
        category, subcategory = unpack_category(method_id)
        node = self.stack_table.push(StackRow(
          frame=self.intern_frame(method_id, offset),
          prefix=prefix,
          category=category,
          subcategory=subcategory,
        ))
        self._nodes[(prefix, method_id)] = node
      prefix = node
    self._stacks[frames] = prefix
    return prefix

  def intern_frame(self, method_id: int, offset: Optional[int] = None) -> int:
    fid = self._frames.get(method_id)
    if fid is not None:
      return fid
    category, subcategory = unpack_category(method_id)
    if is_synthetic(method_id):
      if category >= len(self.taxonomy):
        raise InvalidFrame(method_id, f"names unknown category {category}", offset)
      cat = self.taxonomy.category(category)
      if subcategory >= len(cat.subcategories):
        raise InvalidFrame(method_id, f"names unknown subcategory {subcategory} of {cat.name}", offset)
      name = cat.name
    else:
      name = self.header.method_name(method_id)
    fid = self.frame_table.push(FrameRow(func=self.intern_func(name), category=category, subcategory=subcategory))
    self._frames[method_id] = fid
    return fid

  def intern_func(self, name: str) -> int:
    fid = self._funcs.get(name)
    if fid is None:
      fid = self.func_table.push(FuncRow(name=self.intern_string(name)))
      self._funcs[name] = fid
    return fid

  def intern_string(self, text: str) -> int:
    sid = self._strings.get(text)
    if sid is None:
      sid = len(self.string_array)
      self._strings[text] = sid
      self.string_array.append(text)
    return sid

  def push_sample(self, stack: Optional[int], time: float, event_delay: float) -> int:
    return self.samples.push(SampleRow(stack=stack, time=time, event_delay=event_delay))

  def push_marker(self, row: MarkerRow) -> int:
    return self.markers.push(row)

  def summary(self) -> str:
    return (f"{self.name}: {len(self.samples)} samples, {len(self.stack_table)} stacks, "
            f"{len(self.frame_table)} frames, {len(self.func_table)} funcs, {len(self.markers)} markers")
