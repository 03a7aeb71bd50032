from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class IssueKind(str, Enum):
    MISSING_READING = "missing-reading"
    COVERAGE_INCOMPLETE = "coverage-incomplete"
    BASE_SCRIPT_LOST = "base-script-lost"
    TONE_SANDHI_ERROR = "tone-sandhi-error"
    TONE_MARK_MISSING = "tone-mark-missing"
    SUN_LETTER_ERROR = "sun-letter-error"
    DIACRITIC_MISSING = "diacritic-missing"
    DIACRITIC_UNEXPECTED = "diacritic-unexpected"
    PALATALIZATION_MISSING = "palatalization-missing"
    COMPOUND_READING_ERROR = "compound-reading-error"
    VOWEL_DISTINCTION_ERROR = "vowel-distinction-error"
    SYLLABLE_BOUNDARY_MISSING = "syllable-boundary-missing"
    ENDING_INCOMPLETE = "ending-incomplete"
    ANNOTATION_ORDER_ERROR = "annotation-order-error"
    MISPLACED_READING = "misplaced-reading"
    FOREIGN_ROMANIZATION = "foreign-romanization"
    PUNCTUATION_INSIDE_READING = "punctuation-inside-reading"


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    description: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "description": self.description}


@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    accuracy_score: int
    issues: Tuple[Issue, ...] = ()
    suggestions: Tuple[str, ...] = ()
    coverage_ratio: float = 1.0
    script_char_count: int = 0
    details: str = ""

    @classmethod
    def nothing_to_check(cls, details: str = "No script characters to annotate") -> "ValidationReport":
        return cls(True, 100, details=details)

    @property
    def issue_kinds(self) -> frozenset:
        return frozenset(issue.kind for issue in self.issues)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "accuracy_score": self.accuracy_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "suggestions": list(self.suggestions),
            "coverage_ratio": round(self.coverage_ratio, 4),
            "details": self.details,
        }
