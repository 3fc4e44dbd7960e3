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
Converter settings, loadable from TOML:

  [profile]
  product = "RuneLite"
  process_name = "Client"
  main_thread = "Client"
  event_delay = 0.0001

  [memory]
  include_offheap = false

  [markers]
  clock = "tick"            # or "stream"

  [markers.game_states]
  "60" = "World switcher"
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict

try:
  import tomllib  # Python 3.11+
except ModuleNotFoundError:
  try:
    import tomli as tomllib  # type: ignore
  except ModuleNotFoundError as e:
    raise SystemExit("Missing TOML parser: use Python>=3.11 (tomllib) or install tomli") from e

MARKER_CLOCKS = ("tick", "stream")

GAME_STATES: Dict[int, str] = {
  10: "Login screen",
  11: "Login screen authenticator",
  20: "Logging in",
  25: "Loading",
  30: "Logged in",
  40: "Connection lost",
  50: "Hopping",
}


@dataclass(frozen=True)
class ConverterConfig:
  product: str = "RuneLite"
  process_name: str = "Client"
  main_thread: str = "Client"
  event_delay: float = 0.0001
  # memory total is heap + off-heap when set, heap alone otherwise
  include_offheap: bool = False
  marker_clock: str = "tick"
  game_states: Dict[int, str] = field(default_factory=lambda: dict(GAME_STATES))

  def __post_init__(self):
    if self.marker_clock not in MARKER_CLOCKS:
      raise ValueError(f"markers.clock must be one of {', '.join(MARKER_CLOCKS)}, got {self.marker_clock!r}")
    if self.event_delay < 0:
      raise ValueError(f"profile.event_delay must be >= 0, got {self.event_delay}")


# section -> {toml key: (field name, type)}
_SCHEMA = {
  "profile": {
    "product": ("product", str),
    "process_name": ("process_name", str),
    "main_thread": ("main_thread", str),
    "event_delay": ("event_delay", float),
  },
  "memory": {
    "include_offheap": ("include_offheap", bool),
  },
  "markers": {
    "clock": ("marker_clock", str),
  },
}


def _coerce(key: str, value: Any, typ: type) -> Any:
  if typ is float and isinstance(value, int) and not isinstance(value, bool):
    return float(value)
  if not isinstance(value, typ) or (typ is not bool and isinstance(value, bool)):
    raise ValueError(f"{key} must be a {typ.__name__}, got {value!r}")
  return value


def _game_states(raw: Any) -> Dict[int, str]:
  if not isinstance(raw, dict):
    raise ValueError("markers.game_states must be a table of \"<code>\" = \"<label>\"")
  out = dict(GAME_STATES)
  for k, v in raw.items():
    try:
      code = int(k, 0)
    except ValueError:
      raise ValueError(f"markers.game_states key must be an integer, got {k!r}") from None
    if not isinstance(v, str):
      raise ValueError(f"markers.game_states.{k} must be a string, got {v!r}")
    out[code] = v
  return out


def config_from_dict(data: Dict[str, Any], base: ConverterConfig = ConverterConfig()) -> ConverterConfig:
  updates: Dict[str, Any] = {}
  for section, body in data.items():
    if section not in _SCHEMA:
      raise ValueError(f"Unknown config section: [{section}]")
    if not isinstance(body, dict):
      raise ValueError(f"[{section}] must be a table")
    for key, value in body.items():
      if section == "markers" and key == "game_states":
        updates["game_states"] = _game_states(value)
        continue
      if key not in _SCHEMA[section]:
        raise ValueError(f"Unknown config key: {section}.{key}")
      name, typ = _SCHEMA[section][key]
      updates[name] = _coerce(f"{section}.{key}", value, typ)
  return replace(base, **updates)


def load_config(path: str) -> ConverterConfig:
  with open(path, "rb") as f:
    data = tomllib.load(f)
  return config_from_dict(data)
