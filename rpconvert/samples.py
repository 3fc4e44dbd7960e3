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
Per-tick sample stream.

Each tick is laid out as

  u32 delta_ns
  u64 heap_used, heap_commit, offheap_used, offheap_commit
  for each thread:
    u32 state, u32 n, u32 frames[n] (leaf first), u32 location
  [u32 event_delta_ns]           (only with the "stream" marker clock)
  marker records..., u32 0
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from .categories import JAVA, Taxonomy, pack_category
from .config import ConverterConfig
from .cursor import ByteCursor
from .header import Header
from .markers import NS_PER_MS, MarkerDecoder
from .tables import CounterSample, Table
from .thread import ThreadModel


class MemoryCounter:
  """Memory track: one row per change in total used memory, holding the delta."""

  def __init__(self, include_offheap: bool = False):
    self.include_offheap = include_offheap
    self.samples: Table[CounterSample] = Table(CounterSample)
    self.samples.push(CounterSample(time=0, number=1, count=1))
    self.last_total: Optional[int] = None

  def total(self, heap_used: int, offheap_used: int) -> int:
    if self.include_offheap:
      return heap_used + offheap_used
    return heap_used

  def observe(self, time: float, heap_used: int, offheap_used: int) -> bool:
    total = self.total(heap_used, offheap_used)
    if self.last_total is None:
      # first tick only sets the baseline
      self.last_total = total
      return False
    if total == self.last_total:
      return False
    self.samples.push(CounterSample(time=time, number=1, count=total - self.last_total))
    self.last_total = total
    return True


class SampleStreamDecoder:
  def __init__(self, cursor: ByteCursor, header: Header, taxonomy: Taxonomy,
               threads: List[ThreadModel], config: ConverterConfig):
    self.c = cursor
    self.header = header
    self.taxonomy = taxonomy
    self.threads = threads
    self.config = config
    self.memory = MemoryCounter(include_offheap=config.include_offheap)
    self.markers = MarkerDecoder(threads[0] if threads else None, config.game_states)
    # root-first frame ids for the thread being decoded; reused across ticks
    self._frames = np.zeros(0, dtype=np.uint32)

  def _reserve(self, n: int) -> np.ndarray:
    if self._frames.size < n:
      self._frames = np.zeros(n, dtype=np.uint32)
    return self._frames

  def _read_thread(self, thread: ThreadModel, delta_ms: float) -> None:
    c = self.c
    state = c.u32()
    n = c.u32()
    frames_off = c.offset
    leaf_first = c.u32_array(n)
    frames = self._reserve(n + 1)
    frames[:n] = leaf_first[::-1]

    category, subcategory = self.taxonomy.classify(state)
    if category != JAVA:
      frames[n] = pack_category(category, subcategory)
      n += 1

    c.u32()  # location

    stack = thread.intern_stack(tuple(frames[:n].tolist()), frames_off)
    thread.time += delta_ms
    thread.push_sample(stack, thread.time, self.config.event_delay)

  def read_tick(self) -> None:
    c = self.c
    delta_ms = c.u32() / NS_PER_MS

    heap_used = c.u64()
    c.u64()  # heap committed
    offheap_used = c.u64()
    c.u64()  # off-heap committed
    now = self.threads[0].time if self.threads else 0.0
    self.memory.observe(now, heap_used, offheap_used)

    for thread in self.threads:
      self._read_thread(thread, delta_ms)

    if self.config.marker_clock == "stream":
      event_ms = c.u32() / NS_PER_MS
    else:
      event_ms = delta_ms
    self.markers.read_tick(c, event_ms)

  def run(self) -> int:
    for _ in range(self.header.sample_count):
      self.read_tick()
    return self.header.sample_count
