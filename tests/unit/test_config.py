import pytest
from incubator_api.config import default_config, load_config


def test_missing_file_falls_back_to_defaults(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert config == default_config()
    assert config["device"]["timeout"] == 5.0
    assert config["polling"]["status_interval"] == 5.0
    assert config["polling"]["log_interval"] == 900.0


def test_yaml_overrides_per_section(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "device:\n"
        "  url: http://10.0.0.7/api\n"
        "  use_mock_data: false\n"
        "alerts:\n"
        "  temp_max: 38.0\n"
        "logging:\n"
        "  format: json\n"
    )

    config = load_config(str(path))

    assert config["device"]["url"] == "http://10.0.0.7/api"
    assert config["device"]["use_mock_data"] is False
    assert config["device"]["timeout"] == 5.0
    assert config["alerts"]["temp_max"] == 38.0
    assert config["alerts"]["temp_min"] == 37.0
    assert config["logging"]["format"] == "json"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(str(path)) == default_config()


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(str(path))
