from pathlib import Path

from iterm2_harpoon import config_loader
from iterm2_harpoon.config_loader import (
    DEFAULT_CONFIG,
    deep_merge,
    load_config,
    resolve_data_dir,
    resolve_session_name,
)
from iterm2_harpoon.errors import ErrorType


def test_missing_file_gives_defaults(tmp_path):
    result = load_config(tmp_path / "absent.toml")

    assert result.is_ok()
    assert result.value == DEFAULT_CONFIG


def test_user_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        'session_name = "work"\n'
        "[keys]\n"
        'delete = ["x"]\n'
        "[logging]\n"
        'console_level = "DEBUG"\n'
    )

    config = load_config(path).value

    assert config["session_name"] == "work"
    assert config["keys"]["delete"] == ["x"]
    assert config["keys"]["add_current"] == ["a"]
    assert config["logging"] == {"console_level": "DEBUG", "file_level": "DEBUG"}


def test_invalid_toml_reports_line(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('overlay_name = "harpoon"\nsession_name = \n')

    result = load_config(path)

    assert result.is_err()
    assert result.error.error_type is ErrorType.PARSE_ERROR
    assert result.error.context["config_path"] == str(path)


def test_deep_merge_does_not_mutate_base():
    base = {"a": {"b": 1, "c": 2}}

    merged = deep_merge(base, {"a": {"b": 5}})

    assert merged == {"a": {"b": 5, "c": 2}}
    assert base == {"a": {"b": 1, "c": 2}}


def test_session_name_resolution_order(monkeypatch):
    monkeypatch.delenv(config_loader.SESSION_ENV_VAR, raising=False)
    assert resolve_session_name({}) == "default"

    monkeypatch.setenv(config_loader.SESSION_ENV_VAR, "from-env")
    assert resolve_session_name({}) == "from-env"
    assert resolve_session_name({"session_name": "from-config"}) == "from-config"


def test_data_dir_override_expands_user():
    assert resolve_data_dir({"data_dir": "~/bookmarks"}) == Path("~/bookmarks").expanduser()
    assert resolve_data_dir({}).name == "iterm2-harpoon"
