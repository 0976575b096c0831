import re

from imap_folder_codec.models import SanitizeOptions
from imap_folder_codec.utils.path_sanitizer import (
    create_ascii_alternative,
    email_id_to_filename,
    extract_safe_filename,
    folder_path_to_directory_name,
    is_filename_valid,
    is_path_safe,
    safe_path,
    sanitize_filename,
    sanitize_foldername,
    sanitize_path,
    truncate_to_byte_length,
)


def test_forbidden_characters_are_replaced_one_for_one():
    assert sanitize_filename("test:file.txt") == "test_file.txt"
    assert sanitize_filename("test<>file.txt") == "test__file.txt"
    assert sanitize_filename('a*b?c"d|e/f\\g') == "a_b_c_d_e_f_g"
    assert sanitize_filename("tab\tname") == "tab_name"


def test_non_ascii_is_left_alone():
    assert sanitize_filename("받은편지함") == "받은편지함"
    assert sanitize_filename("受信トレイ.eml") == "受信トレイ.eml"


def test_windows_reserved_names_are_prefixed():
    assert sanitize_filename("CON.txt") == "_CON.txt"
    assert sanitize_filename("con") == "_con"
    assert sanitize_filename("LPT1.log") == "_LPT1.log"
    assert sanitize_filename("CONSOLE.txt") == "CONSOLE.txt"


def test_trailing_dots_and_spaces_are_stripped():
    assert sanitize_filename("name. ") == "name"
    assert sanitize_filename(".hidden") == ".hidden"


def test_empty_names_fall_back_to_default():
    assert sanitize_filename("") == "unnamed"
    assert sanitize_filename("   ") == "unnamed"
    assert sanitize_filename("...") == "unnamed"
    assert sanitize_filename("", SanitizeOptions(default_name="blank")) == "blank"
    assert sanitize_foldername("") == "folder"


def test_truncation_respects_character_boundaries():
    assert truncate_to_byte_length("가나다", 7) == "가나"
    assert sanitize_filename("가나다", SanitizeOptions(max_length=7)) == "가나"
    assert sanitize_filename("a" * 300) == "a" * 255


def test_unix_mode_only_forbids_slash_and_nul():
    options = SanitizeOptions(windows_compat=False)
    assert sanitize_filename("a:b", options) == "a:b"
    assert sanitize_filename("a/b", options) == "a_b"
    assert sanitize_filename("CON", options) == "CON"
    assert sanitize_filename("name.", options) == "name."


def test_custom_replacement():
    assert sanitize_filename("a:b", SanitizeOptions(replacement="-")) == "a-b"


def test_is_filename_valid_agrees_with_sanitize():
    samples = ["report.pdf", "잡다", "test:file.txt", "CON", "", "name.", "Folder & Name"]
    for name in samples:
        assert is_filename_valid(name) == (sanitize_filename(name) == name)
    assert is_filename_valid("잡다")
    assert not is_filename_valid("test:file.txt")


def test_sanitize_path():
    assert sanitize_path("a/b:c\\CON") == "a/b_c/_CON"
    assert sanitize_path("/Parent//잡다/") == "Parent/잡다"


def test_path_containment(tmp_path):
    assert is_path_safe(tmp_path, "sub/file.eml")
    assert not is_path_safe(tmp_path, "../outside")
    assert safe_path(tmp_path, "../etc/passwd") == str(tmp_path / "etc/passwd")
    assert safe_path(tmp_path, "INBOX/1.eml") == str(tmp_path / "INBOX/1.eml")


def test_extract_safe_filename():
    assert extract_safe_filename("C:\\mail\\re:hello.eml") == "re_hello.eml"
    assert extract_safe_filename("/var/mail/잡다.eml") == "잡다.eml"


def test_email_id_to_filename():
    assert email_id_to_filename("<abc@example.com>") == "abc@example.com.eml"
    hashed = email_id_to_filename("<a/b@example.com>")
    assert re.fullmatch(r"[0-9a-f]{32}\.eml", hashed)
    assert email_id_to_filename("<a/b@example.com>") == hashed


def test_folder_path_to_directory_name():
    assert folder_path_to_directory_name("Parent/잡다") == "Parent_잡다"
    assert folder_path_to_directory_name("INBOX.Archive", ".") == "INBOX_Archive"
    assert folder_path_to_directory_name("") == "folder"


def test_create_ascii_alternative():
    alternative = create_ascii_alternative("가.txt")
    assert alternative.ascii == "_ac00_.txt"
    assert alternative.has_non_ascii is True
    plain = create_ascii_alternative("report:1.txt")
    assert plain.ascii == "report_1.txt"
    assert plain.has_non_ascii is False
