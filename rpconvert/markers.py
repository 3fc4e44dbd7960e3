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

from typing import Dict, Optional

from .config import GAME_STATES
from .cursor import ByteCursor
from .errors import UnknownMarkerTag
from .tables import MarkerRow, Phase
from .thread import ThreadModel

EV_END = 0
EV_GC = 1
EV_GAME_STATE = 0x10001
EV_GAME_TICK = 0x10002

NS_PER_MS = 1_000_000


class MarkerDecoder:
  """
  Reads the tagged event records that follow each tick and attaches them to
  one thread. Record times are signed nanosecond offsets from the running
  event clock.
  """

  def __init__(self, thread: Optional[ThreadModel], game_states: Optional[Dict[int, str]] = None):
    # thread is None for traces without threads; records are then read and dropped
    self.thread = thread
    self.game_states = GAME_STATES if game_states is None else game_states
    self.event_time = 0.0

  def _time(self, c: ByteCursor) -> float:
    return self.event_time + c.i32() / NS_PER_MS

  def _push(self, name: str, start: float, end: Optional[float] = None, phase: Phase = Phase.INSTANT) -> None:
    if self.thread is None:
      return
    self.thread.push_marker(MarkerRow(
      name=self.thread.intern_string(name),
      start_time=start,
      end_time=end,
      phase=phase,
      category=0,
    ))

  def state_label(self, code: int) -> str:
    return self.game_states.get(code, str(code))

  def read_tick(self, c: ByteCursor, elapsed_ms: float) -> int:
    """Consume one tick's records up to and including the 0 tag. Returns the record count."""
    self.event_time += elapsed_ms
    n = 0
    while True:
      tag_off = c.offset
      tag = c.u32()
      if tag == EV_END:
        return n
      if tag == EV_GC:
        start = self._time(c)
        end = self._time(c)
        self._push("GC", start, end, Phase.INTERVAL)
      elif tag == EV_GAME_STATE:
        start = self._time(c)
        state = c.u32()
        self._push("Game State " + self.state_label(state), start)
      elif tag == EV_GAME_TICK:
        start = self._time(c)
        self._push("GameTick", start)
      else:
        raise UnknownMarkerTag(tag, tag_off)
      n += 1
