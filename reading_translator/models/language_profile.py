import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from reading_translator.models.validation_report import ValidationReport

Validator = Callable[["LanguageProfile", str, str], ValidationReport]


@dataclass(frozen=True)
class LanguageProfile:
    """
    One row of the language table: how to recognise the language, what an
    annotated word looks like and which rules judge the readings.
    Unscripted (Latin) languages leave ``script_chars`` empty: they get a
    translation but no reading annotation.
    """

    code: str
    name: str
    validator: Validator
    script_chars: Optional[re.Pattern] = None
    detection_chars: Optional[re.Pattern] = None
    annotation_pattern: Optional[re.Pattern] = None
    rules: Tuple[Any, ...] = ()
    scoring: Any = None
    strict_coverage: bool = False
    reading_name: str = ""
    prompt_guidance: str = ""
    latin_markers: Optional[re.Pattern] = None
    postprocess: Optional[Callable[[str, str], str]] = None

    @property
    def has_script(self) -> bool:
        return self.script_chars is not None

    def script_predicate(self, text: str) -> bool:
        pattern = self.detection_chars or self.script_chars
        return bool(pattern and pattern.search(text or ""))

    def validate(self, original: str, annotated: str) -> ValidationReport:
        return self.validator(self, original, annotated)
