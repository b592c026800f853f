from __future__ import annotations

from pathlib import Path

import pytest

from filesize_check.config import (
    CONFIG_ENV,
    DEFAULT_STATE_FILE,
    STATE_FILE_ENV,
    AppConfig,
    ConfigError,
    apply_overrides,
    load_config,
)


def test_defaults_without_file_or_environment() -> None:
    config = load_config(environ={})
    assert config == AppConfig()
    assert config.state_file == DEFAULT_STATE_FILE


def test_yaml_file_resolves_relative_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "check.yaml"
    config_path.write_text(
        "state_file: state/sizes.state\nlog_level: info\nlog_file: /var/log/check.log\n",
        encoding="utf-8",
    )
    config = load_config(config_path, environ={})
    assert config.state_file == (tmp_path / "state" / "sizes.state").resolve()
    assert config.log_level == "INFO"
    assert config.log_file == Path("/var/log/check.log")


def test_environment_and_overrides_take_precedence(tmp_path: Path) -> None:
    config_path = tmp_path / "check.yaml"
    config_path.write_text(f"state_file: {tmp_path / 'from-file'}\n", encoding="utf-8")
    env = {CONFIG_ENV: str(config_path), STATE_FILE_ENV: str(tmp_path / "from-env")}

    config = load_config(environ=env)
    assert config.state_file == tmp_path / "from-env"

    config = apply_overrides(config, state_file=tmp_path / "from-cli", log_level="debug")
    assert config.state_file == tmp_path / "from-cli"
    assert config.log_level == "DEBUG"


def test_empty_file_keeps_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "check.yaml"
    config_path.write_text("", encoding="utf-8")
    assert load_config(config_path, environ={}) == AppConfig()


@pytest.mark.parametrize(
    "content",
    [
        "- not\n- a mapping\n",
        "state_file: [1, 2]\n",
        "log_level: LOUD\n",
        "colour: blue\n",
        "state_file: {unclosed\n",
    ],
)
def test_invalid_configuration_raises(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "check.yaml"
    config_path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(config_path, environ={})


def test_missing_configuration_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.yaml", environ={})
