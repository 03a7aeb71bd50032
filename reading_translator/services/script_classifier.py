import re
from typing import Optional

from reading_translator.logconf import logger
from reading_translator.services.language_profiles import (
    LanguageProfileRegistry,
    normalize_code,
    registry as default_registry,
)
from reading_translator.utils.scripts import (
    ARABIC,
    CJK_IDEOGRAPHS,
    CYRILLIC,
    DEVANAGARI,
    HANGUL,
    KANA,
    LATIN,
    THAI,
    compile_class,
    count_chars,
)

UNKNOWN = "unknown"
LATIN_DEFAULT = "en"
LATIN_RATIO_THRESHOLD = 0.5
MIN_MARKER_HITS = 2

_KANA = compile_class(KANA)
_IDEOGRAPHS = compile_class(CJK_IDEOGRAPHS)
_LATIN = compile_class(LATIN)
_NON_SPACE = re.compile(r"\S")

# Bucket order doubles as the tie-break order.
# Ideographs are resolved to ja or zh depending on kana elsewhere in the text.
SCRIPT_BUCKETS = (
    ("ru", compile_class(CYRILLIC)),
    ("ja", _KANA),
    (None, _IDEOGRAPHS),
    ("ko", compile_class(HANGUL)),
    ("ar", compile_class(ARABIC)),
    ("hi", compile_class(DEVANAGARI)),
    ("th", compile_class(THAI)),
)


class ScriptClassifier:
    """Guesses the source language of a text from the Unicode blocks it uses."""

    def __init__(self, registry: LanguageProfileRegistry = default_registry):
        self.registry = registry

    def classify(self, text: str, forced: Optional[str] = None) -> str:
        """
        Returns a language code, or "unknown". A forced code is trusted and
        returned as given, without looking at the text.
        """
        if forced and forced.strip().lower() != "auto":
            logger.debug(f"Using forced language: {forced}")
            return forced

        text = text or ""
        has_kana = bool(_KANA.search(text))
        counts = {}
        for code, pattern in SCRIPT_BUCKETS:
            if code is None:
                code = "ja" if has_kana else "zh"
            counts[code] = counts.get(code, 0) + count_chars(pattern, text)

        best_code, best_count = None, 0
        for code, count in counts.items():
            if count > best_count:
                best_code, best_count = code, count
        if best_code is not None:
            logger.debug(f"Detected {best_code} from script counts {counts}")
            return best_code

        return self._classify_latin(text)

    def _classify_latin(self, text: str) -> str:
        non_space = count_chars(_NON_SPACE, text)
        if not non_space:
            return UNKNOWN
        ratio = count_chars(_LATIN, text) / non_space
        if ratio < LATIN_RATIO_THRESHOLD:
            logger.debug(f"Latin ratio {ratio:.2f} below threshold, language unknown")
            return UNKNOWN

        best_code, best_hits = LATIN_DEFAULT, MIN_MARKER_HITS - 1
        for profile in self.registry.latin_profiles():
            hits = len(profile.latin_markers.findall(text))
            if hits > best_hits:
                best_code, best_hits = profile.code, hits
        logger.debug(f"Latin text classified as {best_code}")
        return best_code

    def matches_language(self, text: str, code: str) -> bool:
        """Whether ``text`` plausibly is in ``code``; used to reject a wrong forced language early."""
        stripped = (text or "").strip()
        if len(stripped) < 2:
            return True
        key = normalize_code(code)
        if key not in self.registry:
            return True
        profile = self.registry.get(key)
        if profile.has_script:
            return profile.script_predicate(stripped)
        return bool(_LATIN.search(stripped))


classifier = ScriptClassifier()
