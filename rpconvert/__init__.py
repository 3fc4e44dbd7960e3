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
rpconvert

Convert "RP" sampling-profiler traces into Gecko processed-profile JSON,
loadable in https://profiler.firefox.com.

Usage
  with open("client.trace", "rb") as f:
    doc = rpconvert.decode(f.read())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .categories import Taxonomy, build_taxonomy
from .config import ConverterConfig, load_config
from .container import Decompressor, split_container
from .cursor import ByteCursor
from .errors import (
  InvalidFrame,
  InvalidMetadata,
  MalformedContainer,
  TraceError,
  TruncatedInput,
  UnknownMarkerTag,
)
from .header import Header, read_header
from .profile import assemble_profile
from .samples import SampleStreamDecoder
from .thread import ThreadModel

__all__ = [
  "ConverterConfig",
  "Decoded",
  "InvalidFrame",
  "InvalidMetadata",
  "MalformedContainer",
  "TraceError",
  "TruncatedInput",
  "UnknownMarkerTag",
  "decode",
  "decode_trace",
  "load_config",
  "read_trace_header",
]


@dataclass
class Decoded:
  header: Header
  taxonomy: Taxonomy
  threads: List[ThreadModel]
  decoder: SampleStreamDecoder

  def document(self, config: ConverterConfig, start_time: float = 0.0) -> Dict[str, Any]:
    return assemble_profile(self.header, self.taxonomy, self.decoder.memory, self.threads, config, start_time)


def read_trace_header(data: bytes, decompress: Optional[Decompressor] = None) -> Header:
  byteorder, header_bytes, _ = split_container(data, decompress)
  return read_header(ByteCursor(header_bytes, byteorder))


def decode_trace(data: bytes, config: Optional[ConverterConfig] = None,
                 decompress: Optional[Decompressor] = None,
                 taxonomy: Optional[Taxonomy] = None) -> Decoded:
  config = config or ConverterConfig()
  taxonomy = taxonomy or build_taxonomy()

  byteorder, header_bytes, sample_bytes = split_container(data, decompress)
  header = read_header(ByteCursor(header_bytes, byteorder))

  threads = [ThreadModel(name, header, taxonomy) for name in header.thread_names]
  decoder = SampleStreamDecoder(ByteCursor(sample_bytes, byteorder), header, taxonomy, threads, config)
  decoder.run()
  return Decoded(header=header, taxonomy=taxonomy, threads=threads, decoder=decoder)


def decode(data: bytes, config: Optional[ConverterConfig] = None,
           decompress: Optional[Decompressor] = None, start_time: float = 0.0) -> Dict[str, Any]:
  """Decode a whole trace into a profile document. Raises TraceError on any malformed input."""
  config = config or ConverterConfig()
  return decode_trace(data, config, decompress).document(config, start_time)
