"""
Language profile table.

One row per supported language. The pipeline, classifier and validator
only ever look languages up here; adding a language means adding a row.
"""

import re
from dataclasses import replace
from types import MappingProxyType
from typing import Iterable, List, Optional

from reading_translator.models.language_profile import LanguageProfile
from reading_translator.services import reading_rules
from reading_translator.services.annotation_rules import (
    CoverageWeightedScoring,
    RatioScoring,
    score_annotation,
)
from reading_translator.utils.scripts import (
    ARABIC_LETTERS,
    CJK_IDEOGRAPHS,
    CYRILLIC,
    DEVANAGARI_LETTERS,
    HANGUL,
    HANGUL_SYLLABLES,
    HIRAGANA,
    KANA,
    READING_GAP,
    THAI_LETTERS,
    char_class,
    compile_class,
)


def normalize_code(code: Optional[str]) -> str:
    """``"zh-CN"`` -> ``"zh"``, ``" JA "`` -> ``"ja"``."""
    return (code or "").strip().lower().replace("_", "-").split("-")[0]


def annotated_word(script_body: str, reading: str = r"[^()]+") -> re.Pattern:
    return re.compile(
        f"(?P<base>{char_class(script_body)}+){char_class(READING_GAP)}*\\((?P<reading>{reading})\\)"
    )


def _scripted(code, name, script_body, rules, scoring, reading_name, guidance, **extra) -> LanguageProfile:
    extra.setdefault("annotation_pattern", annotated_word(script_body))
    return LanguageProfile(
        code=code,
        name=name,
        validator=score_annotation,
        script_chars=compile_class(script_body),
        rules=rules,
        scoring=scoring,
        reading_name=reading_name,
        prompt_guidance=guidance,
        **extra,
    )


def _latin(code, name, markers) -> LanguageProfile:
    return LanguageProfile(
        code=code,
        name=name,
        validator=score_annotation,
        latin_markers=re.compile(markers, re.IGNORECASE),
    )


JAPANESE = _scripted(
    "ja",
    "Japanese",
    CJK_IDEOGRAPHS,
    reading_rules.JAPANESE_RULES,
    RatioScoring(2),
    "furigana",
    "Put the hiragana reading in parentheses after every word containing kanji, "
    "e.g. 東京(とうきょう). Use dictionary readings for compound words instead of "
    "joining single-kanji readings. Leave kana, numbers and Latin text unchanged.",
    detection_chars=compile_class(KANA, CJK_IDEOGRAPHS),
    # one base may mix kanji and okurigana, e.g. 取り扱い(とりあつかい)
    annotation_pattern=re.compile(
        f"(?P<base>[{CJK_IDEOGRAPHS}々][{CJK_IDEOGRAPHS}々{KANA}]*)\\((?P<reading>[{HIRAGANA}ー?？]+)\\)"
    ),
    strict_coverage=True,
)

CHINESE = _scripted(
    "zh",
    "Chinese",
    CJK_IDEOGRAPHS,
    reading_rules.CHINESE_RULES,
    RatioScoring(2),
    "pinyin",
    "Put Hanyu Pinyin with tone marks in parentheses right after each word, "
    "e.g. 中文(zhōngwén). Apply tone sandhi (不是 búshì, 你好 níhǎo); neutral "
    "syllables such as 的(de) and 了(le) carry no mark.",
)

KOREAN = _scripted(
    "ko",
    "Korean",
    HANGUL_SYLLABLES,
    reading_rules.KOREAN_RULES,
    RatioScoring(3),
    "romanization",
    "Put Revised Romanization in parentheses after each Hangul word, syllables "
    "separated by hyphens, e.g. 문법(mun-beop). Keep ㅓ=eo, ㅗ=o, ㅡ=eu, ㅜ=u "
    "distinct. Do not annotate numbers or Latin text.",
    detection_chars=compile_class(HANGUL),
    postprocess=reading_rules.strip_non_hangul_readings,
)

RUSSIAN = _scripted(
    "ru",
    "Russian",
    CYRILLIC,
    reading_rules.RUSSIAN_RULES,
    RatioScoring(3),
    "transliteration",
    "Keep every Cyrillic word and put its Latin transliteration in parentheses "
    "after it, e.g. Привет(privet). Mark soft consonants with an apostrophe: "
    "ль = l', нь = n'.",
    postprocess=reading_rules.restore_cyrillic_bases,
)

ARABIC_PROFILE = _scripted(
    "ar",
    "Arabic",
    ARABIC_LETTERS,
    reading_rules.ARABIC_RULES,
    CoverageWeightedScoring(),
    "transliteration",
    "Put an ASCII transliteration in parentheses after each Arabic word, e.g. "
    "العربية(al-'arabiyyah). Assimilate the article before sun letters "
    "(ash-shams, not al-shams). No diacritics.",
    postprocess=reading_rules.strip_romanization_diacritics,
)

HINDI = _scripted(
    "hi",
    "Hindi",
    DEVANAGARI_LETTERS,
    reading_rules.HINDI_RULES,
    CoverageWeightedScoring(),
    "IAST romanization",
    "Put IAST romanization in parentheses after each Devanagari word, e.g. "
    "हिन्दी(hindī). Mark long vowels (ā ī ū), retroflexes (ṭ ḍ ṇ) and "
    "sibilants (ś ṣ). Keep punctuation outside the parentheses.",
)

THAI_PROFILE = _scripted(
    "th",
    "Thai",
    THAI_LETTERS,
    reading_rules.THAI_RULES,
    CoverageWeightedScoring(),
    "RTGS romanization",
    "Put RTGS romanization in parentheses after each Thai word, e.g. "
    "สวัสดี(sawatdi). No tone marks.",
)

LATIN_PROFILES = (
    _latin("en", "English", r"\b(?:the|and|is|are|of|to|with|this|that|you|what|have)\b"),
    _latin("fr", "French", r"\b(?:le|les|des|est|et|une|je|vous|pas|avec|dans|qui)\b|[çœ]"),
    _latin("es", "Spanish", r"\b(?:el|los|las|es|y|una|que|por|con|para|está)\b|[ñ¿¡]"),
    _latin("it", "Italian", r"\b(?:il|gli|della|che|è|sono|con|per|questo|una)\b"),
    _latin("pt", "Portuguese", r"\b(?:o|os|as|é|um|uma|não|com|para|você|que)\b|[ãõ]"),
    _latin("de", "German", r"\b(?:der|die|das|und|ist|nicht|ich|mit|ein|eine|sie)\b|[äöüß]"),
    _latin("tl", "Tagalog", r"\b(?:ang|ng|mga|sa|ay|ako|ikaw|hindi|po|naman)\b"),
    _latin("eo", "Esperanto", r"\b(?:la|estas|kaj|mi|vi|ne)\b|[ĉĝĥĵŝŭ]"),
    _latin("vi", "Vietnamese", r"[ăâđêôơưạảấầẩẫậắằẳẵặẹẻẽếềểễệỉịọỏốồổỗộớờởỡợụủứừửữựỳỵỷỹ]"),
)

GENERIC = LanguageProfile(code="unknown", name="Unknown", validator=score_annotation)


class LanguageProfileRegistry:
    """Read-only lookup table; safe to share between concurrent invocations."""

    def __init__(self, profiles: Iterable[LanguageProfile], fallback: LanguageProfile = GENERIC):
        self._profiles = MappingProxyType({p.code: p for p in profiles})
        self._fallback = fallback

    def get(self, code: Optional[str]) -> LanguageProfile:
        key = normalize_code(code)
        profile = self._profiles.get(key)
        if profile is None:
            if not key:
                return self._fallback
            # unlisted language: translation only, named by its code in prompts
            return replace(self._fallback, code=key, name=key)
        return profile

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._profiles

    def codes(self) -> List[str]:
        return list(self._profiles)

    def scripted_profiles(self) -> List[LanguageProfile]:
        return [p for p in self._profiles.values() if p.has_script]

    def latin_profiles(self) -> List[LanguageProfile]:
        return [p for p in self._profiles.values() if p.latin_markers is not None]


registry = LanguageProfileRegistry(
    (JAPANESE, CHINESE, KOREAN, RUSSIAN, ARABIC_PROFILE, HINDI, THAI_PROFILE) + LATIN_PROFILES
)
