import pytest

from rpconvert.cursor import ByteCursor
from rpconvert.errors import TruncatedInput, UnknownMarkerTag
from rpconvert.markers import MarkerDecoder
from rpconvert.tables import Phase
from rpconvert.thread import ThreadModel

from tracebuilder import TraceBuilder


@pytest.fixture
def thread(header, taxonomy):
  return ThreadModel("Client", header, taxonomy)


def names(thread):
  return [thread.string_array[m.name] for m in thread.markers.rows]


def test_gc_interval(thread):
  b = TraceBuilder()
  c = ByteCursor(b.gc(500_000, 2_500_000) + b.u32(0))
  dec = MarkerDecoder(thread)
  assert dec.read_tick(c, 10.0) == 1
  m = thread.markers[0]
  assert names(thread) == ["GC"]
  assert m.start_time == pytest.approx(10.5)
  assert m.end_time == pytest.approx(12.5)
  assert m.phase == Phase.INTERVAL
  assert m.category == 0


def test_event_time_accumulates_across_ticks(thread):
  b = TraceBuilder()
  dec = MarkerDecoder(thread)
  dec.read_tick(ByteCursor(b.game_tick(0) + b.u32(0)), 5.0)
  dec.read_tick(ByteCursor(b.game_tick(-1_000_000) + b.u32(0)), 5.0)
  assert [m.start_time for m in thread.markers.rows] == [pytest.approx(5.0), pytest.approx(9.0)]
  assert names(thread) == ["GameTick", "GameTick"]
  assert all(m.end_time is None and m.phase == Phase.INSTANT for m in thread.markers.rows)


def test_game_state_labels(thread):
  b = TraceBuilder()
  data = b.game_state(0, 30) + b.game_state(0, 11) + b.game_state(0, 99) + b.u32(0)
  MarkerDecoder(thread).read_tick(ByteCursor(data), 0.0)
  assert names(thread) == ["Game State Logged in", "Game State Login screen authenticator", "Game State 99"]


def test_custom_game_state_labels(thread):
  b = TraceBuilder()
  MarkerDecoder(thread, {99: "Custom"}).read_tick(ByteCursor(b.game_state(0, 99) + b.u32(0)), 0.0)
  assert names(thread) == ["Game State Custom"]


def test_terminator_stops_reading(thread):
  b = TraceBuilder()
  trailing = b.u32(0xDEAD)
  c = ByteCursor(b.u32(0) + trailing)
  assert MarkerDecoder(thread).read_tick(c, 1.0) == 0
  assert c.offset == 4
  assert len(thread.markers) == 0


@pytest.mark.parametrize("tag", [2, 0x10000, 0x10003, 0xFFFFFFFF])
def test_unknown_tag(thread, tag):
  b = TraceBuilder()
  data = b.game_tick(0) + b.u32(tag) + b.u32(0)
  with pytest.raises(UnknownMarkerTag) as ei:
    MarkerDecoder(thread).read_tick(ByteCursor(data), 0.0)
  assert ei.value.tag == tag
  assert ei.value.offset == 8


def test_missing_terminator(thread):
  b = TraceBuilder()
  with pytest.raises(TruncatedInput):
    MarkerDecoder(thread).read_tick(ByteCursor(b.game_tick(0)), 0.0)


def test_without_thread_records_are_consumed():
  b = TraceBuilder()
  c = ByteCursor(b.gc(0, 1) + b.game_state(0, 10) + b.u32(0))
  dec = MarkerDecoder(None)
  assert dec.read_tick(c, 1.0) == 2
  assert c.remaining() == 0
