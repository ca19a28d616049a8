import pytest

from hotwire.config.loader import interpolate_env_vars, load_config, load_runtime_config


def test_load_config_missing_file_returns_empty(tmp_path):
    assert load_config(tmp_path / "hotwire.yaml") == {}


def test_load_config_keeps_known_sections_only(tmp_path):
    config_file = tmp_path / "hotwire.yaml"
    config_file.write_text(
        """
hotwire:
  app_name: Test Bot
commands:
  match_mode: prefix
unknown:
  value: 1
"""
    )

    data = load_config(config_file)

    assert data == {"hotwire": {"app_name": "Test Bot"}, "commands": {"match_mode": "prefix"}}


def test_interpolate_env_vars_with_defaults(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "secret")
    monkeypatch.delenv("MISSING_VAR", raising=False)

    content = "token: ${BOT_TOKEN}\nother: ${MISSING_VAR:fallback}\nempty: ${MISSING_VAR}"

    assert interpolate_env_vars(content) == "token: secret\nother: fallback\nempty: "


def test_load_config_invalid_yaml_raises(tmp_path):
    config_file = tmp_path / "hotwire.yaml"
    config_file.write_text("hotwire: [unclosed")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(config_file)


def test_load_config_rejects_non_mapping(tmp_path):
    config_file = tmp_path / "hotwire.yaml"
    config_file.write_text("- a\n- b\n")

    with pytest.raises(ValueError, match="mapping"):
        load_config(config_file)


def test_load_runtime_config_builds_sections(tmp_path, monkeypatch):
    monkeypatch.setenv("HOTWIRE_TEST_TOKEN", "abc")
    (tmp_path / "hotwire.yaml").write_text(
        """
hotwire:
  token: ${HOTWIRE_TEST_TOKEN}
  log_level: DEBUG
discovery:
  commands_dir: cmds
hot_reload:
  enabled: true
  stability_ms: 100
"""
    )

    config = load_runtime_config(tmp_path)

    assert config.root_dir == tmp_path.resolve()
    assert config.settings.token == "abc"
    assert config.settings.log_level == "DEBUG"
    assert config.commands_path == tmp_path.resolve() / "cmds"
    assert config.hot_reload.enabled is True
    assert config.hot_reload.stability_ms == 100
    assert config.commands.match_mode == "exact"


def test_framework_settings_read_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("HOTWIRE_APP_NAME", "From Env")

    config = load_runtime_config(tmp_path)

    assert config.settings.app_name == "From Env"
