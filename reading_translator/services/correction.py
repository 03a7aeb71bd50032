from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from reading_translator.logconf import logger
from reading_translator.models.annotated_result import AnnotatedResult, RetryBudget
from reading_translator.models.validation_report import ValidationReport
from reading_translator.settings import settings

CorrectionRequester = Callable[[AnnotatedResult, ValidationReport], Awaitable[Optional[AnnotatedResult]]]
Evaluator = Callable[[AnnotatedResult], ValidationReport]


class CorrectionState(str, Enum):
    ACCEPTED = "accepted"        # no correction attempted
    CORRECTING = "correcting"
    RESOLVED = "resolved"        # best of the candidates chosen


@dataclass(frozen=True)
class CorrectionOutcome:
    result: AnnotatedResult
    report: ValidationReport
    state: CorrectionState
    rounds: int = 0
    replaced: bool = False


def is_strict_improvement(old: ValidationReport, new: ValidationReport, margin: int = 0) -> bool:
    """
    ``new`` wins only with a higher score: by more than ``margin``, or by
    any amount when its issue kinds are a strict subset of the old ones.
    Equal scores always keep ``old``.
    """
    if new.accuracy_score <= old.accuracy_score:
        return False
    if new.accuracy_score - old.accuracy_score > margin:
        return True
    return new.issue_kinds < old.issue_kinds


class CorrectionOrchestrator:
    """
    Decides whether an invalid candidate gets an issue-targeted follow-up
    request and which candidate survives. Never touches the provider
    itself: the pipeline passes in how to request and how to score.
    """

    def __init__(
        self,
        max_rounds: int | None = None,
        score_ceiling: int | None = None,
        improvement_margin: int | None = None,
    ) -> None:
        self.max_rounds = settings.correction_rounds if max_rounds is None else max_rounds
        self.score_ceiling = settings.correction_score_ceiling if score_ceiling is None else score_ceiling
        self.improvement_margin = settings.improvement_margin if improvement_margin is None else improvement_margin

    def should_correct(self, report: ValidationReport, budget: RetryBudget, rounds: int = 0) -> bool:
        return (
            not report.is_valid
            and report.accuracy_score <= self.score_ceiling
            and budget.correction_retries_remaining > 0
            and rounds < self.max_rounds
        )

    async def run(
        self,
        candidate: AnnotatedResult,
        report: ValidationReport,
        budget: RetryBudget,
        request_correction: CorrectionRequester,
        evaluate: Evaluator,
    ) -> CorrectionOutcome:
        state, rounds, replaced = CorrectionState.ACCEPTED, 0, False

        while self.should_correct(report, budget, rounds):
            budget.consume_correction()
            state = CorrectionState.CORRECTING
            rounds += 1
            logger.info(
                "Requesting correction %d/%d (score %d, %d issue(s))",
                rounds, self.max_rounds, report.accuracy_score, len(report.issues),
            )

            corrected = await request_correction(candidate, report)
            state = CorrectionState.RESOLVED
            if corrected is None:
                logger.warning("Corrective response unusable, keeping the previous candidate")
                continue

            new_report = evaluate(corrected)
            if is_strict_improvement(report, new_report, self.improvement_margin):
                logger.info("Correction accepted: score %d -> %d", report.accuracy_score, new_report.accuracy_score)
                candidate, report, replaced = corrected, new_report, True
            else:
                logger.info(
                    "Correction rejected: score %d -> %d", report.accuracy_score, new_report.accuracy_score
                )

        return CorrectionOutcome(candidate, report, state, rounds, replaced)
