from datetime import timedelta

import pytest

from turbine.config import ConfigError, MetricsSettings, get_config_path, load_settings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the user's real config and environment out of the tests."""
    monkeypatch.delenv("TURBINE_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


def write_config(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_defaults_when_no_file():
    assert get_config_path() is None
    settings = load_settings()
    assert settings == MetricsSettings()
    assert settings.failure_link_threshold == timedelta(minutes=10)
    assert settings.signal_max_duration == timedelta(hours=48)
    assert settings.signal_merge_gap == timedelta(hours=1)


def test_load_from_project_config(tmp_path):
    write_config(
        tmp_path / "config" / "turbine.yaml",
        "metrics:\n  cut_in_speed: 3.5\n  repair_events: [156, 157]\n",
    )

    settings = load_settings()

    assert settings.cut_in_speed == 3.5
    assert settings.cut_out_speed == 25
    assert settings.repair_events == ("156", "157")
    assert settings.maintenance_events == ("155",)


def test_env_var_takes_precedence(tmp_path, monkeypatch):
    write_config(tmp_path / "config" / "turbine.yaml", "metrics:\n  cut_in_speed: 3.5\n")
    custom = write_config(tmp_path / "custom.yaml", "metrics:\n  cut_in_speed: 4\n")
    monkeypatch.setenv("TURBINE_CONFIG", str(custom))

    assert get_config_path() == custom
    assert load_settings().cut_in_speed == 4


def test_user_config_fallback(tmp_path):
    path = write_config(
        tmp_path / "home" / ".config" / "turbine" / "turbine.yaml",
        "metrics:\n  failure_link_minutes: 20\n",
    )

    assert get_config_path() == path
    assert load_settings().failure_link_threshold == timedelta(minutes=20)


def test_empty_file_uses_defaults(tmp_path):
    path = write_config(tmp_path / "empty.yaml", "")
    assert load_settings(path) == MetricsSettings()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(tmp_path / "nope.yaml")


def test_unparseable_file(tmp_path):
    path = write_config(tmp_path / "bad.yaml", "metrics: [unclosed\n")
    with pytest.raises(ConfigError, match="Could not parse"):
        load_settings(path)


def test_metrics_section_must_be_mapping(tmp_path):
    path = write_config(tmp_path / "bad.yaml", "metrics:\n  - 1\n  - 2\n")
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_settings(path)


def test_single_event_code_is_not_split(tmp_path):
    path = write_config(tmp_path / "codes.yaml", 'metrics:\n  maintenance_events: "155"\n  repair_events: 157\n')

    settings = load_settings(path)

    assert settings.maintenance_events == ("155",)
    assert settings.repair_events == ("157",)


def test_event_codes_must_be_a_list(tmp_path):
    path = write_config(tmp_path / "codes.yaml", "metrics:\n  repair_events:\n    code: 156\n")
    with pytest.raises(ConfigError, match="repair_events must be a list"):
        load_settings(path)


def test_non_numeric_value(tmp_path):
    path = write_config(tmp_path / "bad.yaml", "metrics:\n  cut_in_speed: fast\n")
    with pytest.raises(ConfigError, match="Invalid value"):
        load_settings(path)


@pytest.mark.parametrize(
    "body",
    [
        "cut_in_speed: -1",
        "cut_in_speed: 30",
        "failure_link_minutes: -5",
        "signal_merge_gap_minutes: -1",
    ],
)
def test_out_of_range_values(tmp_path, body):
    path = write_config(tmp_path / "bad.yaml", f"metrics:\n  {body}\n")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_as_dict():
    data = MetricsSettings().as_dict()
    assert data["maintenance_events"] == ["155"]
    assert data["cut_out_speed"] == 25.0
