import pytest

from rpconvert.config import GAME_STATES, ConverterConfig, config_from_dict, load_config


def test_defaults():
  cfg = ConverterConfig()
  assert cfg.product == "RuneLite"
  assert cfg.main_thread == "Client"
  assert cfg.event_delay == 0.0001
  assert cfg.include_offheap is False
  assert cfg.marker_clock == "tick"
  assert cfg.game_states == GAME_STATES


def test_load_toml(tmp_path):
  p = tmp_path / "rp.toml"
  p.write_text(
    '[profile]\n'
    'product = "Test"\n'
    'event_delay = 1\n'
    '[memory]\n'
    'include_offheap = true\n'
    '[markers]\n'
    'clock = "stream"\n'
    '[markers.game_states]\n'
    '"60" = "World switcher"\n'
    '"10" = "Title"\n'
  )
  cfg = load_config(str(p))
  assert cfg.product == "Test"
  assert cfg.event_delay == 1.0
  assert isinstance(cfg.event_delay, float)
  assert cfg.include_offheap is True
  assert cfg.marker_clock == "stream"
  assert cfg.game_states[60] == "World switcher"
  assert cfg.game_states[10] == "Title"
  assert cfg.game_states[30] == "Logged in"
  assert GAME_STATES[10] == "Login screen"


@pytest.mark.parametrize("data,msg", [
  ({"nope": {}}, "Unknown config section"),
  ({"profile": {"colour": "red"}}, "Unknown config key"),
  ({"profile": {"product": 3}}, "profile.product"),
  ({"memory": {"include_offheap": 1}}, "memory.include_offheap"),
  ({"profile": {"event_delay": True}}, "profile.event_delay"),
  ({"markers": {"clock": "wall"}}, "markers.clock"),
  ({"markers": {"game_states": {"x": "y"}}}, "game_states"),
  ({"markers": {"game_states": {"1": 2}}}, "game_states"),
  ({"profile": "flat"}, "must be a table"),
])
def test_rejects_bad_config(data, msg):
  with pytest.raises(ValueError, match=msg):
    config_from_dict(data)


def test_negative_event_delay():
  with pytest.raises(ValueError):
    ConverterConfig(event_delay=-1.0)
