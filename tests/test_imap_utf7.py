import string

import pytest

from imap_folder_codec.exceptions import MalformedEncodingError
from imap_folder_codec.tags import ENCODING_TEST_STRINGS
from imap_folder_codec.utils.imap_utf7 import (
    analyze_string,
    decode_imap_utf7,
    encode_imap_utf7,
    ensure_decoded,
    has_non_ascii,
    looks_like_imap_utf7,
    safe_decode_imap_utf7,
    safe_encode_imap_utf7,
    verify_round_trip,
)

CORPUS = [value for values in ENCODING_TEST_STRINGS.values() for value in values]


def test_ascii_names_are_unchanged():
    assert encode_imap_utf7("INBOX") == "INBOX"
    printable = "".join(ch for ch in string.printable if 0x20 <= ord(ch) <= 0x7E and ch != "&")
    assert encode_imap_utf7(printable) == printable


def test_encode_hangul():
    assert encode_imap_utf7("잡다") == "&x6Gy5A-"
    assert decode_imap_utf7("&x6Gy5A-") == "잡다"


def test_rfc3501_example():
    assert decode_imap_utf7("~peter/mail/&U,BTFw-/&ZeVnLIqe-") == "~peter/mail/台北/日本語"
    assert encode_imap_utf7("~peter/mail/台北/日本語") == "~peter/mail/&U,BTFw-/&ZeVnLIqe-"


def test_astral_characters_use_surrogate_pairs():
    assert encode_imap_utf7("📧 Mail") == "&2D3c5w- Mail"
    assert decode_imap_utf7("&2D3c5w- Mail") == "📧 Mail"


def test_ampersand_is_always_escaped():
    assert encode_imap_utf7("A & B") == "A &- B"
    assert decode_imap_utf7("A &- B") == "A & B"
    assert encode_imap_utf7("&&") == "&-&-"


def test_round_trip_corpus():
    for value in CORPUS:
        assert decode_imap_utf7(encode_imap_utf7(value)) == value, value
        assert verify_round_trip(value)


def test_run_ends_at_first_non_alphabet_character():
    assert decode_imap_utf7("&x6Gy5A/x") == "잡다/x"


@pytest.mark.parametrize(
    "encoded",
    [
        "&x6Gy5A",  # unterminated
        "&",
        "& B",  # shift followed by neither run nor '-'
        "&AB-",  # half a UTF-16 code unit
        "&2D0-",  # lone high surrogate
        "&A-",  # impossible base64 length
        "&AGE-",  # shifted printable ASCII
        "&Dev-",  # stray pad bits
        "&x6Gy5B-",
    ],
)
def test_malformed_input_is_reported(encoded):
    with pytest.raises(MalformedEncodingError):
        decode_imap_utf7(encoded)
    result = safe_decode_imap_utf7(encoded)
    assert result.success is False
    assert result.value is None
    assert result.original == encoded
    assert result.error


def test_safe_decode_success():
    result = safe_decode_imap_utf7("&x6Gy5A-")
    assert result.success is True
    assert result.value == "잡다"
    assert result.error is None


def test_safe_encode_rejects_lone_surrogate():
    assert safe_encode_imap_utf7("\ud83d").success is False
    assert safe_encode_imap_utf7("잡다").value == "&x6Gy5A-"


def test_looks_like_imap_utf7():
    encoded = encode_imap_utf7("잡다")
    assert looks_like_imap_utf7(encoded)
    assert looks_like_imap_utf7("INBOX/" + encoded)
    assert looks_like_imap_utf7("A &- B")
    assert not looks_like_imap_utf7("INBOX")
    assert not looks_like_imap_utf7("받은편지함")
    assert not looks_like_imap_utf7("R&D")


def test_ensure_decoded():
    assert ensure_decoded(encode_imap_utf7("잡다")) == "잡다"
    assert ensure_decoded("잡다") == "잡다"
    assert ensure_decoded("INBOX") == "INBOX"


def test_ensure_decoded_keeps_undecodable_text():
    assert ensure_decoded("&AB-") == "&AB-"
    assert ensure_decoded("Folder &x6Gy5A") == "Folder &x6Gy5A"
    assert ensure_decoded("R&Dev-Notes") == "R&Dev-Notes"
    assert ensure_decoded("Q&A-Archive") == "Q&A-Archive"


def test_ensure_decoded_is_idempotent():
    samples = CORPUS + [encode_imap_utf7(value) for value in CORPUS if not looks_like_imap_utf7(value)]
    for value in samples:
        once = ensure_decoded(value)
        assert ensure_decoded(once) == once, value


def test_has_non_ascii():
    assert has_non_ascii("잡다")
    assert has_non_ascii("tab\there")
    assert not has_non_ascii("INBOX")


def test_analyze_string():
    analysis = analyze_string("잡다")
    assert analysis.has_non_ascii is True
    assert analysis.looks_encoded is False
    assert analysis.encoded == "&x6Gy5A-"
    assert analysis.hex_dump == "ec9ea1eb8ba4"

    encoded = analyze_string("&x6Gy5A-")
    assert encoded.looks_encoded is True
    assert encoded.decoded == "잡다"
