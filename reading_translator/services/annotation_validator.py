import re
from dataclasses import dataclass
from typing import Optional, Tuple

from reading_translator.logconf import logger
from reading_translator.models.validation_report import ValidationReport
from reading_translator.services.language_profiles import LanguageProfileRegistry, registry as default_registry
from reading_translator.utils.scripts import CJK_IDEOGRAPHS, HANGUL_SYLLABLES, KANA, compile_class

VERIFICATION_THRESHOLD = 70

_ERROR_PHRASES = re.compile(
    r"\b(?:error|failed|exception|timeout|rate limit|invalid|malformed|api error|token limit)",
    re.IGNORECASE,
)
_JSON_ARTIFACTS = re.compile(r'"(?:readingsText|furiganaText|translatedText|isComplete)"\s*:|\{[\s\S]*\}')
_ASCII_LETTER = re.compile(r"[a-zA-Z]")
_EAST_ASIAN = compile_class(KANA, CJK_IDEOGRAPHS, HANGUL_SYLLABLES)


class AnnotationValidator:
    """Thin dispatcher: the profile table decides how a language is judged."""

    def __init__(self, registry: LanguageProfileRegistry = default_registry) -> None:
        self.registry = registry

    def validate(self, original: str, annotated: str, language_code: str) -> ValidationReport:
        profile = self.registry.get(language_code)
        report = profile.validate(original, annotated)
        if not report.is_valid:
            logger.info(
                "%s annotation scored %d with %d issue(s): %s",
                profile.code,
                report.accuracy_score,
                len(report.issues),
                ", ".join(sorted(k.value for k in report.issue_kinds)),
            )
        return report


@dataclass(frozen=True)
class TranslationQuality:
    score: int
    needs_verification: bool
    reasons: Tuple[str, ...] = ()


def assess_translation_quality(
    translated: str,
    target_language: str,
    source_length: int,
    registry: Optional[LanguageProfileRegistry] = None,
) -> TranslationQuality:
    """
    Cheap plausibility check of the translation itself: length, target
    script, leaked error messages and JSON fragments. Advisory only.
    """
    registry = registry or default_registry
    translated = translated or ""
    score, reasons = 100, []

    min_length = max(3, int(source_length * 0.3))
    if len(translated) < min_length:
        score -= min(50, (min_length - len(translated)) * 5)
        reasons.append(f"Too short ({len(translated)} chars, expected >{min_length})")

    target = registry.get(target_language)
    if target.has_script:
        has_expected = target.script_predicate(translated)
    elif target.latin_markers is not None:
        has_expected = bool(_ASCII_LETTER.search(translated)) and not _EAST_ASIAN.search(translated)
    else:
        has_expected = bool(translated)
    if not has_expected:
        score -= 30
        reasons.append(f"Missing expected {target.code} characters")

    if _ERROR_PHRASES.search(translated):
        score -= 60
        reasons.append("Contains error messages or API failures")

    if _JSON_ARTIFACTS.search(translated):
        score -= 40
        reasons.append("Contains JSON parsing artifacts")

    score = max(0, score)
    return TranslationQuality(score, score < VERIFICATION_THRESHOLD, tuple(reasons))
