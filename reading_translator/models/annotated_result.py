from dataclasses import dataclass
from enum import Enum
from typing import Optional

from reading_translator.models.validation_report import ValidationReport


class CorrectionStatus(str, Enum):
    NOT_NEEDED = "not-needed"   # first candidate was valid
    SKIPPED = "skipped"         # invalid, but no correction budget / above ceiling
    ACCEPTED = "accepted"       # corrected candidate replaced the first one
    REJECTED = "rejected"       # correction attempted, original kept


@dataclass(frozen=True)
class AnnotatedResult:
    source_text: str
    annotated_text: str
    translated_text: str
    language_code: str
    validation: Optional[ValidationReport] = None
    correction_status: CorrectionStatus = CorrectionStatus.NOT_NEEDED

    def to_dict(self) -> dict:
        return {
            "source_text": self.source_text,
            "annotated_text": self.annotated_text,
            "translated_text": self.translated_text,
            "language_code": self.language_code,
            "validation": self.validation.to_dict() if self.validation else None,
            "correction_status": self.correction_status.value,
        }


@dataclass
class RetryBudget:
    """Per-invocation counters. Only ever decremented."""

    provider_retries_remaining: int
    correction_retries_remaining: int

    def consume_provider_retry(self) -> bool:
        if self.provider_retries_remaining <= 0:
            return False
        self.provider_retries_remaining -= 1
        return True

    def consume_correction(self) -> bool:
        if self.correction_retries_remaining <= 0:
            return False
        self.correction_retries_remaining -= 1
        return True
