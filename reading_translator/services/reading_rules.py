"""
Per-language rule tables for reading annotations.

Each ``*_RULES`` tuple is plain data fed to the generic runner in
``annotation_rules``; the functions at the bottom are the post-processing
hooks some languages need before their result is returned.
"""

import re
import unicodedata
from types import MappingProxyType

from reading_translator.logconf import logger
from reading_translator.models.validation_report import IssueKind
from reading_translator.services.annotation_rules import (
    AlignedSyllableRule,
    CompoundRule,
    PatternRule,
    PresenceRule,
    SegmentRule,
    SyllableRule,
)
from reading_translator.utils.scripts import (
    ARABIC_LETTERS,
    CJK_IDEOGRAPHS,
    COMBINING_MARKS,
    CYRILLIC,
    DEVANAGARI_LETTERS,
    HANGUL,
    HANGUL_SYLLABLES,
    LATIN,
    READING_GAP,
    THAI_LETTERS,
    char_class,
)

GAP = char_class(READING_GAP) + "*"
ROMAN_READING = r"\([a-zA-Z\-']+\)"


def _order_rule(script_body: str, name: str, reading: str = ROMAN_READING) -> PatternRule:
    return PatternRule(
        IssueKind.ANNOTATION_ORDER_ERROR,
        re.compile(reading + char_class(script_body) + "+"),
        f"Romanization before {name} text detected (wrong order): {{matches}}",
        f"Format must be: {name}(romanization), NOT (romanization){name}",
    )


def _orphan_rule(script_body: str, name: str, reading: str = ROMAN_READING) -> PatternRule:
    script = char_class(script_body)
    return PatternRule(
        IssueKind.MISPLACED_READING,
        re.compile(f"(?<!{script})(?<!{script}\\s){reading}(?!{script})"),
        f"Romanization without {name} base detected: {{matches}}",
        f"Add the original {name} text before each romanization in parentheses",
    )


# --- Chinese ---------------------------------------------------------------

TONE_MARKS = "āáǎàēéěèīíǐìōóǒòūúǔùǖǘǚǜ"
NEUTRAL_SYLLABLES = frozenset({"de", "le", "ma", "ba", "ne", "zi", "zhe", "me", "men"})

# (word, syllables as misread, correct reading, rule)
TONE_SANDHI = (
    ("不是", ("bù", "shì"), "búshì", "不 becomes bú before a 4th tone"),
    ("不对", ("bù", "duì"), "búduì", "不 becomes bú before a 4th tone"),
    ("不要", ("bù", "yào"), "búyào", "不 becomes bú before a 4th tone"),
    ("一个", ("yī", "gè"), "yí gè", "一 becomes yí before a 4th tone"),
    ("一样", ("yī", "yàng"), "yíyàng", "一 becomes yí before a 4th tone"),
    ("你好", ("nǐ", "hǎo"), "níhǎo", "the first of two 3rd tones becomes 2nd"),
)

CHINESE_COMPOUNDS = MappingProxyType({
    "普通话": "pǔtōnghuà",
    "北京大学": "Běijīng Dàxué",
    "中华人民共和国": "Zhōnghuá Rénmín Gònghéguó",
    "电视机": "diànshìjī",
    "计算机": "jìsuànjī",
    "图书馆": "túshūguǎn",
    "大学生": "dàxuéshēng",
    "火车站": "huǒchēzhàn",
    "中国": "Zhōngguó",
    "北京": "Běijīng",
    "上海": "Shànghǎi",
})


def _sandhi_pattern(word: str, syllables) -> re.Pattern:
    joined = re.escape(word) + GAP + r"\(\s*" + r"[\s\-]*".join(map(re.escape, syllables)) + r"\s*\)"
    split = "".join(
        re.escape(ch) + r"\(\s*" + re.escape(syl) + r"\s*\)" for ch, syl in zip(word, syllables)
    )
    return re.compile(f"(?:{joined}|{split})", re.IGNORECASE)


CHINESE_RULES = tuple(
    PatternRule(
        IssueKind.TONE_SANDHI_ERROR,
        _sandhi_pattern(word, syllables),
        f"Tone sandhi error, {rule}: {{match}}",
        f"Use {word}({correct})",
    )
    for word, syllables, correct, rule in TONE_SANDHI
) + (
    SyllableRule(
        IssueKind.TONE_MARK_MISSING,
        re.compile(char_class(TONE_MARKS), re.IGNORECASE),
        "Missing tone mark in {base}: {syllable}",
        "Add the tone mark to every non-neutral syllable",
        exempt=NEUTRAL_SYLLABLES,
    ),
    CompoundRule(CHINESE_COMPOUNDS, CJK_IDEOGRAPHS),
)


# --- Japanese --------------------------------------------------------------

JAPANESE_COMPOUNDS = MappingProxyType({
    "車道": "しゃどう",
    "歩道": "ほどう",
    "自転車": "じてんしゃ",
    "新聞": "しんぶん",
    "今朝": "けさ",
    "市場": "いちば",
    "一人": "ひとり",
    "二人": "ふたり",
    "今日": "きょう",
    "明日": "あした",
    "昨日": "きのう",
    "大人": "おとな",
    "子供": "こども",
    "東京": "とうきょう",
    "先生": "せんせい",
    "友達": "ともだち",
    "上手": "じょうず",
    "下手": "へた",
    "時計": "とけい",
    "眼鏡": "めがね",
    "土産": "みやげ",
})

JAPANESE_RULES = (CompoundRule(JAPANESE_COMPOUNDS, CJK_IDEOGRAPHS),)


# --- Korean ----------------------------------------------------------------

KOREAN_COMPOUNDS = MappingProxyType({
    "안녕하세요": "an-nyeong-ha-se-yo",
    "감사합니다": "gam-sa-ham-ni-da",
    "죄송합니다": "joe-song-ham-ni-da",
    "한국어": "han-gug-eo",
    "대학교": "dae-hak-gyo",
    "평생교육": "pyeong-saeng-gyo-yuk",
    "자갈치시장": "ja-gal-chi-si-jang",
    "점심시간": "jeom-sim-si-gan",
    "화장실": "hwa-jang-sil",
    "서울": "seo-ul",
})

# syllable -> (expected romanization, common confusion)
KOREAN_VOWELS = MappingProxyType({
    "서": ("seo", "so"),
    "소": ("so", "seo"),
    "어": ("eo", "o"),
    "오": ("o", "eo"),
    "으": ("eu", "u"),
    "우": ("u", "eu"),
})

JAPANESE_ROMAJI = re.compile(r"ni-?sen|san-?ju|gatsu|-desu\b|\bshi\b|tsu", re.IGNORECASE)

KOREAN_RULES = (
    AlignedSyllableRule(
        IssueKind.VOWEL_DISTINCTION_ERROR,
        re.compile(char_class(HANGUL_SYLLABLES)),
        KOREAN_VOWELS,
        'Vowel distinction error in {segment}: {syllable} should be "{expected}" not "{confusable}"',
        "Keep vowels distinct: ㅓ = eo, ㅗ = o, ㅡ = eu, ㅜ = u",
    ),
    # strip_non_hangul_readings removes these in the pipeline; still reported to direct validator callers
    PatternRule(
        IssueKind.MISPLACED_READING,
        re.compile(r"(?:^|(?<=[\s(]))([^\s()" + HANGUL + r"]+)\(([^)]*)\)", re.MULTILINE),
        "Romanization applied to non-Hangul text: {matches}",
        "Only annotate Hangul words; leave numbers, Latin text and symbols as they are",
    ),
    SegmentRule(
        IssueKind.FOREIGN_ROMANIZATION,
        re.compile(char_class(HANGUL_SYLLABLES)),
        "Japanese-style romanization used for Korean: {text}",
        "Use Revised Romanization of Korean, not Japanese romaji",
        forbidden=JAPANESE_ROMAJI,
    ),
    SegmentRule(
        IssueKind.ENDING_INCOMPLETE,
        re.compile(r"습니다$"),
        "Incomplete formal ending: {text}",
        'Formal endings in 습니다 must be romanized completely, ending in "-da"',
        required=re.compile(r"da\W*$", re.IGNORECASE),
    ),
    SegmentRule(
        IssueKind.SYLLABLE_BOUNDARY_MISSING,
        re.compile(r"^(?:평생교육|자갈치시장|점심시간)$"),
        "Missing syllable boundaries in compound: {text}",
        "Separate the syllables of long compounds with hyphens",
        required=re.compile(r"-"),
    ),
    CompoundRule(KOREAN_COMPOUNDS, HANGUL_SYLLABLES),
)


# --- Russian ---------------------------------------------------------------

# soft-consonant digraph -> palatalized romanization
PALATALIZATION = (
    ("ль", "l'"),
    ("нь", "n'"),
    ("ть", "t'"),
    ("дь", "d'"),
    ("сь", "s'"),
)

RUSSIAN_RULES = tuple(
    SegmentRule(
        IssueKind.PALATALIZATION_MISSING,
        re.compile(digraph),
        "Missing palatalization marker in {text}",
        f"Use {translit} for {digraph}",
        required=re.compile(r"['ʹʼ]"),
    )
    for digraph, translit in PALATALIZATION
) + (
    PatternRule(
        IssueKind.MISPLACED_READING,
        re.compile(r"\b([a-zA-Z]+)\(\1\)"),
        "Romanization without Cyrillic base detected: {matches}",
        "Keep the Cyrillic word and put its transliteration in parentheses",
    ),
)


# --- Arabic ----------------------------------------------------------------

SUN_LETTERS = ("sh", "th", "dh", "t", "d", "r", "z", "s", "n")

ARABIC_RULES = (
    _order_rule(ARABIC_LETTERS, "Arabic"),
    _orphan_rule(ARABIC_LETTERS, "Arabic"),
) + tuple(
    PatternRule(
        IssueKind.SUN_LETTER_ERROR,
        re.compile(rf"\bal-{letter}(?=[aeiou'])", re.IGNORECASE),
        f'Sun letter assimilation error: found "{{match}}" - should use "a{letter}-"',
        f"Use a{letter}- for sun letters (e.g. a{letter}-{letter}a)",
    )
    for letter in SUN_LETTERS
) + (
    # strip_romanization_diacritics removes these in the pipeline; still reported to direct validator callers
    PatternRule(
        IssueKind.DIACRITIC_UNEXPECTED,
        re.compile(char_class(COMBINING_MARKS)),
        "Diacritical marks detected in romanization ({count} found) - should use simple ASCII",
        "Use simple ASCII letters: kh, sh, d (not ḍ or d̲)",
        normalize="NFD",
    ),
)


# --- Hindi -----------------------------------------------------------------

IAST_READING = r"\([" + LATIN + r"\-']+\)"

HINDI_RULES = (
    _order_rule(DEVANAGARI_LETTERS, "Hindi", IAST_READING),
    _orphan_rule(DEVANAGARI_LETTERS, "Hindi", IAST_READING),
    PatternRule(
        IssueKind.PUNCTUATION_INSIDE_READING,
        re.compile(char_class(DEVANAGARI_LETTERS) + r"+\([^)]*['\"][^)]*\)"),
        "Quote marks inside romanization: {matches}",
        "Keep punctuation outside the parentheses",
    ),
    PresenceRule(
        IssueKind.DIACRITIC_MISSING,
        re.compile(r"[āīūĀĪŪ]"),
        10,
        "Missing vowel length marks (ā, ī, ū) - romanization may be incomplete",
        "Mark long vowels: ā, ī, ū",
    ),
    PresenceRule(
        IssueKind.DIACRITIC_MISSING,
        re.compile(r"[ṭḍṇṣṃṅñśḥḷṛ]"),
        10,
        "Missing retroflex and sibilant marks (ṭ, ḍ, ṇ, ṣ, ś)",
        "Use dotted letters for retroflex consonants and ś/ṣ for sibilants",
    ),
)


# --- Thai ------------------------------------------------------------------

THAI_RULES = (
    _order_rule(THAI_LETTERS, "Thai"),
    _orphan_rule(THAI_LETTERS, "Thai"),
)


# --- post-processing -------------------------------------------------------

_ANNOTATION = re.compile(r"([^\s()]+)\(([^)]*)\)")
_HANGUL_CHAR = re.compile(char_class(HANGUL_SYLLABLES))


def strip_non_hangul_readings(original: str, annotated: str) -> str:
    """Drops readings the model attached to numbers, Latin words or symbols."""
    stripped = []

    def _replace(match):
        if _HANGUL_CHAR.search(match.group(1)):
            return match.group(0)
        stripped.append(match.group(0))
        return match.group(1)

    cleaned = _ANNOTATION.sub(_replace, annotated)
    if stripped:
        logger.info(f"Removed {len(stripped)} romanization(s) on non-Hangul text: {stripped[:3]}")
    return cleaned


_CYRILLIC_CHARS = re.compile(char_class(CYRILLIC))
_CYRILLIC_WORDS = re.compile(char_class(CYRILLIC) + "+")
_LATIN_ANNOTATION = re.compile(r"([a-zA-Z]+)\(([a-zA-Z'\"\s\-]+)\)")


def restore_cyrillic_bases(original: str, annotated: str) -> str:
    """
    When the model replaced the Cyrillic words with their romanization,
    put the original words back in front of the readings, in order.
    """
    if _CYRILLIC_CHARS.search(annotated) or not _CYRILLIC_CHARS.search(original):
        return annotated
    words = iter(_CYRILLIC_WORDS.findall(original))
    restored = 0

    def _replace(match):
        nonlocal restored
        word = next(words, None)
        if word is None:
            return match.group(0)
        restored += 1
        return f"{word}({match.group(2)})"

    rebuilt = _LATIN_ANNOTATION.sub(_replace, annotated)
    if not restored:
        logger.warning("Could not restore Cyrillic text from the romanized annotation")
        return annotated
    logger.info(f"Restored {restored} Cyrillic word(s) in the annotation")
    return rebuilt


def strip_romanization_diacritics(original: str, annotated: str) -> str:
    decomposed = unicodedata.normalize("NFD", annotated)
    return unicodedata.normalize("NFC", re.sub(char_class(COMBINING_MARKS), "", decomposed))
