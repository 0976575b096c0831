import json
import logging

from imap_folder_codec.models import EscapeMode
from imap_folder_codec.utils.debug_formatter import (
    char_hex_dump,
    compare_strings,
    debug_string,
    format_log_message,
    hex_dump,
    hex_dump_detailed,
    log_compare,
    to_json_log,
    to_safe_string,
    visualize_encoding,
)


def test_hex_dump():
    assert hex_dump("A") == "41"
    assert hex_dump("가") == "eab080"
    assert hex_dump("") == ""
    assert hex_dump_detailed("가") == "ea b0 80"


def test_debug_string():
    info = debug_string("잡다")
    assert info.hex == "ec9ea1eb8ba4"
    assert info.length == 2
    assert info.byte_length == 6
    assert info.has_non_ascii is True
    assert info.looks_encoded is False
    assert debug_string("&x6Gy5A-").looks_encoded is True


def test_to_safe_string_modes():
    assert to_safe_string("Hello") == "Hello"
    assert to_safe_string("안녕") == "안녕"
    assert to_safe_string("안", EscapeMode.UNICODE) == "\\uc548"
    assert to_safe_string("📧", "unicode") == "\\U0001f4e7"
    assert to_safe_string("가", EscapeMode.HEX) == "\\xea\\xb0\\x80"


def test_to_safe_string_control_characters():
    assert to_safe_string("a\tb") == "a\\x09b"
    assert to_safe_string("a\tb", show_control_chars=False) == "ab"
    assert to_safe_string("\x7f") == "\\x7f"


def test_to_safe_string_empty_and_truncated():
    assert to_safe_string("") == "<empty>"
    assert to_safe_string("a" * 300, max_length=10) == "aaaaaaa..."
    assert to_safe_string("a" * 10, max_length=10) == "a" * 10


def test_char_hex_dump():
    entries = char_hex_dump("A가")
    assert [entry.hex for entry in entries] == ["41", "eab080"]
    assert entries[1].code == 0xAC00


def test_compare_strings():
    result = compare_strings({"a": "잡다", "b": "잡다", "c": "&x6Gy5A-"})
    assert result["a"]["equals"] == ["b"]
    assert result["c"]["equals"] == []
    assert result["c"]["looks_encoded"] is True


def test_format_log_message_adds_hex_for_non_ascii():
    record = format_log_message("info", "folder synced", {"name": "잡다", "count": 3, "nested": {"path": "INBOX"}})
    assert record["level"] == "info"
    assert record["data"]["name"] == "잡다"
    assert record["data"]["name_hex"] == "ec9ea1eb8ba4"
    assert record["data"]["count"] == 3
    assert record["data"]["nested"] == {"path": "INBOX"}
    assert record["timestamp"].endswith("Z")
    assert format_log_message("debug", "empty")["data"] is None


def test_to_json_log_keeps_unicode():
    payload = json.loads(to_json_log("warn", "odd name", {"name": "잡다"}))
    assert payload["message"] == "odd name"
    assert payload["data"]["name"] == "잡다"


def test_visualize_encoding():
    output = visualize_encoding("A가")
    assert "Length: 2 chars, 4 bytes" in output
    assert "U+AC00" in output
    assert "[Hangul]" in output
    assert "[ASCII]" in output


def test_log_compare_reports_first_difference(caplog):
    caplog.set_level(logging.DEBUG, logger="imap_folder_codec.utils.debug_formatter")
    log_compare("stored", "잡다", "wire", "잡가")
    messages = [record.getMessage() for record in caplog.records]
    assert any("[STRING DEBUG] stored" in message for message in messages)
    assert any("stored != wire" in message and "index 1" in message for message in messages)
