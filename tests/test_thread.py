import tracemalloc

import pytest

from rpconvert.categories import pack_category
from rpconvert.errors import InvalidFrame, TraceError
from rpconvert.header import UNRESOLVED_METHOD
from rpconvert.tables import FrameRow, MarkerRow, Phase
from rpconvert.thread import ThreadModel


@pytest.fixture
def thread(header, taxonomy):
  return ThreadModel("Client", header, taxonomy)


def test_resource_and_empty_string_come_first(thread):
  assert thread.string_array == [""]
  assert len(thread.resource_table) == 1
  assert thread.resource_table[0].name == 0
  assert thread.resource_table[0].type == 2


def test_string_interning_first_seen_order(thread):
  assert thread.intern_string("a") == 1
  assert thread.intern_string("b") == 2
  assert thread.intern_string("a") == 1
  assert thread.string_array == ["", "a", "b"]


def test_frame_interning(thread):
  f1 = thread.intern_frame(1)
  f2 = thread.intern_frame(2)
  assert (f1, f2) == (0, 1)
  assert thread.intern_frame(1) == f1
  assert len(thread.frame_table) == 2
  names = [thread.string_array[thread.func_table[r.func].name] for r in thread.frame_table.rows]
  assert names == ["com/example/Client::tick()V", "com/example/Client::run()V"]


def test_synthetic_frame_uses_category_name(thread):
  fid = thread.intern_frame(pack_category(2, 5))
  row = thread.frame_table[fid]
  assert (row.category, row.subcategory) == (2, 5)
  assert thread.string_array[thread.func_table[row.func].name] == "Idle"


def test_funcs_dedupe_by_name(thread):
  a = thread.intern_frame(pack_category(2, 1))
  b = thread.intern_frame(pack_category(2, 5))
  assert a != b
  assert thread.frame_table[a].func == thread.frame_table[b].func
  assert len(thread.func_table) == 1


def test_unknown_method_resolves_to_sentinel(thread):
  fid = thread.intern_frame(0)
  assert thread.string_array[thread.func_table[thread.frame_table[fid].func].name] == UNRESOLVED_METHOD


def test_synthetic_frame_outside_taxonomy(thread):
  with pytest.raises(InvalidFrame):
    thread.intern_frame(pack_category(77, 0))


@pytest.mark.parametrize("category,subcategory", [(1, 9), (1, 1), (0, 1), (2, 6), (3, 1)])
def test_synthetic_frame_outside_subcategories(thread, category, subcategory):
  with pytest.raises(InvalidFrame, match="subcategory"):
    thread.intern_frame(pack_category(category, subcategory))
  assert len(thread.frame_table) == 0


def test_invalid_frame_carries_offset(thread):
  with pytest.raises(TraceError) as exc:
    thread.intern_stack((1, pack_category(1, 9)), offset=44)
  assert exc.value.offset == 44
  assert "at offset 44" in str(exc.value)


def test_stack_trie(thread):
  root = thread.intern_stack((2,))
  child = thread.intern_stack((2, 1))
  assert root == 0
  assert child == 1
  assert thread.stack_table[child].prefix == root
  assert thread.stack_table[root].prefix is None
  assert thread.intern_stack((2, 1)) == child


def test_stack_creates_missing_prefixes_root_first(thread):
  leaf = thread.intern_stack((2, 3, 1))
  assert leaf == 2
  rows = thread.stack_table.rows
  assert [r.prefix for r in rows] == [None, 0, 1]
  assert [thread.frame_table[r.frame] for r in rows] == [
    FrameRow(func=0, category=0, subcategory=0),
    FrameRow(func=1, category=0, subcategory=0),
    FrameRow(func=2, category=0, subcategory=0),
  ]
  assert thread.intern_stack((2, 3)) == 1


def test_differing_element_gives_new_stack(thread):
  a = thread.intern_stack((2, 1))
  b = thread.intern_stack((2, 3))
  c = thread.intern_stack((2, 1, pack_category(2, 1)))
  d = thread.intern_stack((2, 1, pack_category(2, 2)))
  assert len({a, b, c, d}) == 4
  assert thread.stack_table[c].category == 2
  assert thread.stack_table[c].subcategory == 1
  assert thread.stack_table[c].prefix == a


def test_empty_stack(thread):
  assert thread.intern_stack(()) is None
  assert len(thread.stack_table) == 0


def test_deep_stack_does_not_recurse(thread):
  frames = tuple([1, 2] * 2500)
  sid = thread.intern_stack(frames)
  assert sid == len(frames) - 1
  assert len(thread.frame_table) == 2
  # a longer stack sharing the prefix only adds one node
  assert thread.intern_stack(frames + (3,)) == len(frames)


def test_deepest_stack_memory_is_linear(thread):
  depth = 0xFFFF
  frames = tuple(range(1, depth + 1))
  tracemalloc.start()
  try:
    sid = thread.intern_stack(frames)
    _, peak = tracemalloc.get_traced_memory()
  finally:
    tracemalloc.stop()
  assert sid == depth - 1
  assert len(thread.stack_table) == depth
  # a few hundred bytes per node; a per-prefix key would need gigabytes
  assert peak < 128 * 1024 * 1024
  assert thread.intern_stack(frames[:10]) == 9


def test_wide_frame_ids_do_not_collide(thread):
  # ids that would alias if packed into a fixed-width integer
  a = thread.intern_stack((1, 0, 2))
  b = thread.intern_stack((1, 2))
  assert a != b


def test_samples_and_markers(thread):
  assert thread.push_sample(0, 1.5, 0.0001) == 0
  name = thread.intern_string("GC")
  assert thread.push_marker(MarkerRow(name=name, start_time=1.0, end_time=2.0, phase=Phase.INTERVAL)) == 0
  assert thread.samples[0].time == 1.5
  assert thread.markers[0].phase == Phase.INTERVAL
