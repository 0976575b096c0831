"""Unicode normalization, script detection and Hangul initial-consonant search."""

from __future__ import annotations

import re
import unicodedata

from ..models import NormalizationForm, ScriptClassification, StringAnalysis
from ..tags import Utf8String, as_utf8

HANGUL_SYLLABLES = (0xAC00, 0xD7A3)
HANGUL_JAMO = (0x1100, 0x11FF)
HANGUL_COMPAT_JAMO = (0x3130, 0x318F)
CJK_UNIFIED = (0x4E00, 0x9FFF)
HIRAGANA = (0x3040, 0x309F)
KATAKANA = (0x30A0, 0x30FF)

_EMOJI_RANGES = (
    (0x1F300, 0x1F9FF),  # pictographs, emoticons, transport
    (0x2600, 0x26FF),
    (0x2700, 0x27BF),
    (0x1FA00, 0x1FAFF),
    (0x1F1E0, 0x1F1FF),  # regional indicators
)

# Lead consonants in syllable order; 21 vowels x 28 tails per lead.
CHOSUNG = (
    "ㄱ", "ㄲ", "ㄴ", "ㄷ", "ㄸ", "ㄹ", "ㅁ", "ㅂ", "ㅃ", "ㅅ",
    "ㅆ", "ㅇ", "ㅈ", "ㅉ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)
_SYLLABLES_PER_LEAD = 21 * 28

_WHITESPACE_RUN = re.compile(r"\s+")
_DIGIT_RUN = re.compile(r"(\d+)")


def _within(code: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= code <= bounds[1]


def normalize(value: str, form: NormalizationForm | str = NormalizationForm.NFC) -> Utf8String:
    """Normalize ``value`` to ``form`` (NFC unless told otherwise)."""
    if not value:
        return as_utf8(value)
    return as_utf8(unicodedata.normalize(NormalizationForm(form).value, value))


def normalize_nfc(value: str) -> Utf8String:
    """Compose characters; decomposed Hangul jamo become syllables."""
    return normalize(value, NormalizationForm.NFC)


def normalize_nfd(value: str) -> Utf8String:
    return normalize(value, NormalizationForm.NFD)


def normalize_nfkc(value: str) -> Utf8String:
    return normalize(value, NormalizationForm.NFKC)


def equals(a: str, b: str, *, ignore_case: bool = False, normalize: bool = True) -> bool:
    """Compare two strings, by default after NFC normalization."""
    if normalize:
        a, b = normalize_nfc(a), normalize_nfc(b)
    if ignore_case:
        return a.casefold() == b.casefold()
    return a == b


def contains_ignore_case(haystack: str, needle: str) -> bool:
    return normalize_nfc(needle).casefold() in normalize_nfc(haystack).casefold()


def sort_key(value: str) -> tuple[tuple[int, int | str], ...]:
    """Key for ordering folder names independent of normalization and case.

    Digit runs compare by value, so ``Folder 2`` sorts before ``Folder 10``.
    """
    parts = _DIGIT_RUN.split(normalize_nfc(value).casefold())
    return tuple((0, int(part)) if index % 2 else (1, part) for index, part in enumerate(parts))


def is_hangul_syllable(ch: str) -> bool:
    return _within(ord(ch), HANGUL_SYLLABLES)


def is_hangul_jamo(ch: str) -> bool:
    code = ord(ch)
    return _within(code, HANGUL_JAMO) or _within(code, HANGUL_COMPAT_JAMO)


def contains_hangul(value: str) -> bool:
    return any(is_hangul_syllable(ch) or is_hangul_jamo(ch) for ch in value)


def is_cjk_unified(ch: str) -> bool:
    return _within(ord(ch), CJK_UNIFIED)


def is_japanese(ch: str) -> bool:
    """True for Hiragana and Katakana."""
    code = ord(ch)
    return _within(code, HIRAGANA) or _within(code, KATAKANA)


def contains_cjk(value: str) -> bool:
    """True when ``value`` holds ideographs, kana or Hangul syllables."""
    return any(is_cjk_unified(ch) or is_japanese(ch) or is_hangul_syllable(ch) for ch in value)


def has_emoji(value: str) -> bool:
    return any(_within(ord(ch), bounds) for ch in value for bounds in _EMOJI_RANGES)


def detect_script(value: str) -> ScriptClassification:
    """Classify ``value`` by the letters it contains.

    Only letters count; digits, punctuation, symbols and emoji are ignored.
    Kana wins over ideographs because ideographs alone could be either
    Japanese or Chinese.
    """
    latin = hangul = kana = ideograph = other = False
    for ch in value:
        if ch.isascii() and ch.isalpha():
            latin = True
        elif is_hangul_syllable(ch) or is_hangul_jamo(ch):
            hangul = True
        elif is_japanese(ch):
            kana = True
        elif is_cjk_unified(ch):
            ideograph = True
        elif not ch.isascii() and unicodedata.category(ch).startswith("L"):
            other = True

    if not (hangul or kana or ideograph):
        return ScriptClassification.OTHER
    if latin or (hangul and (kana or ideograph or other)):
        return ScriptClassification.MIXED
    if hangul:
        return ScriptClassification.HANGUL
    if kana:
        return ScriptClassification.JAPANESE
    return ScriptClassification.CHINESE


def extract_chosung(value: str, *, keep_other: bool = False) -> str:
    """Return the lead consonant of every Hangul syllable in ``value``.

    Other characters are dropped unless ``keep_other`` is set.
    """
    result: list[str] = []
    for ch in normalize_nfc(value):
        code = ord(ch)
        if _within(code, HANGUL_SYLLABLES):
            result.append(CHOSUNG[(code - HANGUL_SYLLABLES[0]) // _SYLLABLES_PER_LEAD])
        elif keep_other:
            result.append(ch)
    return "".join(result)


def match_chosung(target: str, query: str) -> bool:
    """True when ``query`` is a prefix of the initial consonants of ``target``.

    >>> match_chosung("받은편지함", "ㅂㅇ")
    True
    """
    return extract_chosung(target).startswith(query)


def to_half_width(value: str) -> Utf8String:
    """Map full-width ASCII variants (U+FF01-FF5E) to ASCII."""
    return as_utf8("".join(chr(ord(ch) - 0xFEE0) if 0xFF01 <= ord(ch) <= 0xFF5E else ch for ch in value))


def to_full_width(value: str) -> Utf8String:
    return as_utf8("".join(chr(ord(ch) + 0xFEE0) if 0x21 <= ord(ch) <= 0x7E else ch for ch in value))


def normalize_for_search(value: str) -> Utf8String:
    """NFC, full-width to half-width, lowercase and collapsed whitespace."""
    result = to_half_width(normalize_nfc(value)).lower()
    return as_utf8(_WHITESPACE_RUN.sub(" ", result).strip())


def analyze_string(value: str) -> StringAnalysis:
    normalized = normalize_nfc(value)
    is_normalized = value == normalized
    return StringAnalysis(
        length=len(value.encode("utf-16-le", errors="surrogatepass")) // 2,
        char_count=len(value),
        byte_length=len(value.encode("utf-8", errors="surrogatepass")),
        script=detect_script(value),
        has_hangul=contains_hangul(value),
        has_cjk=contains_cjk(value),
        has_emoji=has_emoji(value),
        is_normalized=is_normalized,
        normalization_form=NormalizationForm.NFC if is_normalized else None,
    )
