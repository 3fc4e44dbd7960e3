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

"""Assembles the Gecko processed-profile document."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .categories import Taxonomy
from .config import ConverterConfig
from .header import Header
from .samples import MemoryCounter
from .thread import ThreadModel

GECKO_VERSION = 23
PREPROCESSED_PROFILE_VERSION = 36
MAIN_THREAD_NAME = "GeckoMain"
PID = 1


def sampling_interval_ms(header: Header) -> Optional[float]:
  delay = header.metadata.get("delay")
  if isinstance(delay, (int, float)) and not isinstance(delay, bool):
    return delay / 1_000
  if header.sample_count:
    return header.duration_us / header.sample_count / 1_000
  return None


def oscpu(metadata: Dict[str, Any]) -> Optional[str]:
  parts = [str(metadata[k]) for k in ("os.name", "os.arch") if metadata.get(k) is not None]
  return " ".join(parts) if parts else None


def counter_json(memory: MemoryCounter) -> Dict[str, Any]:
  return {
    "name": "malloc",
    "category": "Memory",
    "description": "Allocated memory",
    "pid": PID,
    "mainThreadIndex": 0,
    "sampleGroups": [
      {
        "id": 0,
        "samples": memory.samples.to_json(),
      }
    ],
  }


def thread_json(thread: ThreadModel, config: ConverterConfig) -> Dict[str, Any]:
  return {
    "name": MAIN_THREAD_NAME if thread.name == config.main_thread else thread.name,
    "processName": config.process_name,
    "pid": PID,
    "libs": [],
    "pausedRanges": [],
    "frameTable": thread.frame_table.to_json(),
    "funcTable": thread.func_table.to_json(),
    "stackTable": thread.stack_table.to_json(),
    "samples": thread.samples.to_json(),
    "markers": thread.markers.to_json(),
    "resourceTable": thread.resource_table.to_json(),
    "stringArray": list(thread.string_array),
  }


def meta_json(header: Header, taxonomy: Taxonomy, config: ConverterConfig, start_time: float) -> Dict[str, Any]:
  extra = header.metadata
  return {
    "version": GECKO_VERSION,
    "startTime": start_time,
    "preprocessedProfileVersion": PREPROCESSED_PROFILE_VERSION,
    "misc": extra.get("version"),
    "product": config.product,
    "oscpu": oscpu(extra),
    "abi": extra.get("os.arch"),
    "appBuildID": extra.get("buildID"),
    "interval": sampling_interval_ms(header),
    "categories": taxonomy.to_json(),
    "markerSchema": [],
    "sampleUnits": {
      "time": "ms",
      "eventDelay": "ms",
    },
  }


def assemble_profile(header: Header, taxonomy: Taxonomy, memory: MemoryCounter,
                     threads: List[ThreadModel], config: ConverterConfig,
                     start_time: float = 0.0) -> Dict[str, Any]:
  return {
    "libs": [],
    "meta": meta_json(header, taxonomy, config, start_time),
    "pages": [],
    "counters": [counter_json(memory)],
    "threads": [thread_json(t, config) for t in threads],
    "pausedRanges": [],
  }
