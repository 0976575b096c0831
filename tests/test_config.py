import pytest
from pydantic import ValidationError

from imap_folder_codec.config import CodecSettings, SanitizerConfig, load_settings
from imap_folder_codec.exceptions import ConfigurationError
from imap_folder_codec.models import EscapeMode, SanitizeOptions


def test_defaults():
    settings = load_settings()
    assert settings.debug_escape_mode is EscapeMode.MIXED
    assert settings.debug_max_length == 200
    assert settings.default_delimiter == "/"
    assert settings.config_path is None
    assert settings.sanitizer.to_options() == SanitizeOptions()


def test_load_from_yaml(tmp_path):
    config_file = tmp_path / "codec.yaml"
    config_file.write_text(
        "debug_escape_mode: unicode\n"
        "default_delimiter: '.'\n"
        "sanitizer:\n"
        "  replacement: '-'\n"
        "  windows_compat: false\n"
        "  max_length: 128\n",
        encoding="utf-8",
    )
    settings = load_settings(config_file)
    assert settings.debug_escape_mode is EscapeMode.UNICODE
    assert settings.default_delimiter == "."
    assert settings.config_path == config_file.resolve()
    options = settings.sanitizer.to_options()
    assert options.replacement == "-"
    assert options.windows_compat is False
    assert options.max_length == 128
    assert options.default_name == "unnamed"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MAIL_CODEC_DEBUG_MAX_LENGTH", "50")
    monkeypatch.setenv("MAIL_CODEC_SANITIZER__DEFAULT_NAME", "untitled")
    settings = load_settings()
    assert settings.debug_max_length == 50
    assert settings.sanitizer.default_name == "untitled"


def test_explicit_overrides():
    settings = load_settings(overrides={"debug_escape_mode": "hex"})
    assert settings.debug_escape_mode is EscapeMode.HEX


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("sanitizer: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_settings(config_file)


def test_non_mapping_yaml(tmp_path):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_settings(config_file)


@pytest.mark.parametrize("replacement", [":", "/", "__", "\x01"])
def test_forbidden_replacement(replacement):
    with pytest.raises(ConfigurationError):
        SanitizerConfig(replacement=replacement)


def test_blank_default_name():
    with pytest.raises(ConfigurationError):
        load_settings(overrides={"sanitizer": {"default_name": "  "}})


def test_multi_character_delimiter():
    with pytest.raises(ConfigurationError):
        CodecSettings(default_delimiter="::")


def test_max_length_bounds():
    with pytest.raises(ValidationError):
        SanitizerConfig(max_length=8)
