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

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .cursor import ByteCursor
from .errors import InvalidMetadata

UNRESOLVED_METHOD = "bug!"


@dataclass(frozen=True)
class Method:
  id: int
  class_name: str
  name: str
  signature: str

  @property
  def display(self) -> str:
    return f"{self.class_name}::{self.name}{self.signature}"


@dataclass(frozen=True)
class Header:
  sample_count: int
  duration_us: int
  metadata: Dict[str, Any]
  thread_names: Tuple[str, ...]
  methods: Dict[int, Method] = field(default_factory=dict)

  def method_name(self, method_id: int) -> str:
    # id 0 and ids the header never declared both resolve to the sentinel
    if method_id == 0:
      return UNRESOLVED_METHOD
    m = self.methods.get(method_id)
    return m.display if m is not None else UNRESOLVED_METHOD


def strip_descriptor(klass: str) -> str:
  """'Lnet/runelite/Foo;' -> 'net/runelite/Foo'"""
  return klass[1:-1]


def parse_metadata(blob: bytes, offset: int) -> Dict[str, Any]:
  try:
    extra = json.loads(blob.decode("utf-8"))
  except (UnicodeDecodeError, json.JSONDecodeError) as e:
    raise InvalidMetadata(f"metadata is not valid JSON: {e}", offset) from e
  if not isinstance(extra, dict):
    raise InvalidMetadata(f"metadata must be a JSON object, got {type(extra).__name__}", offset)
  return extra


def read_method(c: ByteCursor) -> Method:
  method_id = c.u32()
  klass = strip_descriptor(c.cstr())
  name = c.cstr()
  signature = c.cstr()
  return Method(id=method_id, class_name=klass, name=name, signature=signature)


def read_header(c: ByteCursor) -> Header:
  num_samples = c.u64()
  duration_us = c.u64()
  extra_len = c.u64()
  num_threads = c.u64()
  num_methods = c.u64()

  extra_off = c.offset
  extra = parse_metadata(c.raw(extra_len), extra_off)

  threads: List[str] = []
  for _ in range(num_threads):
    threads.append(c.cstr())

  methods: Dict[int, Method] = {}
  for _ in range(num_methods):
    m = read_method(c)
    if m.id != 0:
      methods[m.id] = m

  return Header(
    sample_count=num_samples,
    duration_us=duration_us,
    metadata=extra,
    thread_names=tuple(threads),
    methods=methods,
  )
