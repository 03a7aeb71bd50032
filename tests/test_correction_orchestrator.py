import asyncio

import pytest

from reading_translator.models.annotated_result import AnnotatedResult, RetryBudget
from reading_translator.models.validation_report import Issue, IssueKind, ValidationReport
from reading_translator.services.correction import (
    CorrectionOrchestrator,
    CorrectionState,
    is_strict_improvement,
)


def report(score, *kinds):
    issues = tuple(Issue(kind, kind.value) for kind in kinds)
    return ValidationReport(is_valid=not issues, accuracy_score=score, issues=issues)


def candidate(annotated):
    return AnnotatedResult("src", annotated, "translation", "ja")


class ScriptedCorrector:
    """Hands out the given (candidate, report) pairs in order and records each call."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.calls = []
        self.reports = {}

    async def request(self, current, current_report):
        self.calls.append((current, current_report))
        result, new_report = self.steps.pop(0)
        if result is not None:
            self.reports[result.annotated_text] = new_report
        return result

    def evaluate(self, result):
        return self.reports[result.annotated_text]


def run(orchestrator, first, first_report, budget, corrector):
    return asyncio.run(
        orchestrator.run(first, first_report, budget, corrector.request, corrector.evaluate)
    )


def test_equal_or_lower_score_never_wins():
    old = report(60, IssueKind.TONE_MARK_MISSING)
    assert not is_strict_improvement(old, report(60))
    assert not is_strict_improvement(old, report(40))


def test_higher_score_wins():
    assert is_strict_improvement(report(60, IssueKind.TONE_MARK_MISSING), report(61, IssueKind.TONE_MARK_MISSING))


def test_margin_can_be_bypassed_by_fewer_issue_kinds():
    old = report(60, IssueKind.TONE_MARK_MISSING, IssueKind.COVERAGE_INCOMPLETE)
    assert not is_strict_improvement(old, report(65, IssueKind.TONE_SANDHI_ERROR), margin=10)
    assert is_strict_improvement(old, report(65, IssueKind.TONE_MARK_MISSING), margin=10)
    assert is_strict_improvement(old, report(75, IssueKind.TONE_SANDHI_ERROR), margin=10)


@pytest.mark.parametrize("old_score", range(0, 101, 20))
@pytest.mark.parametrize("new_score", range(0, 101, 20))
def test_replacement_only_on_strictly_higher_score(old_score, new_score):
    old = report(old_score, IssueKind.COMPOUND_READING_ERROR)
    new = report(new_score) if new_score == 100 else report(new_score, IssueKind.COMPOUND_READING_ERROR)
    corrector = ScriptedCorrector((candidate("new"), new))

    outcome = run(CorrectionOrchestrator(), candidate("old"), old, RetryBudget(0, 1), corrector)

    assert outcome.replaced == (new_score > old_score)
    assert outcome.result.annotated_text == ("new" if new_score > old_score else "old")


def test_better_candidate_is_accepted():
    corrector = ScriptedCorrector((candidate("good"), report(100)))
    budget = RetryBudget(0, 1)

    outcome = run(CorrectionOrchestrator(), candidate("bad"), report(33, IssueKind.COMPOUND_READING_ERROR), budget, corrector)

    assert outcome.state == CorrectionState.RESOLVED
    assert outcome.replaced
    assert outcome.rounds == 1
    assert outcome.result.annotated_text == "good"
    assert outcome.report.is_valid
    assert budget.correction_retries_remaining == 0


def test_worse_candidate_is_discarded():
    first = report(50, IssueKind.TONE_MARK_MISSING)
    corrector = ScriptedCorrector((candidate("worse"), report(20, IssueKind.TONE_MARK_MISSING)))

    outcome = run(CorrectionOrchestrator(), candidate("first"), first, RetryBudget(0, 1), corrector)

    assert outcome.state == CorrectionState.RESOLVED
    assert not outcome.replaced
    assert outcome.result.annotated_text == "first"
    assert outcome.report is first


def test_corrector_receives_failed_report():
    first = report(50, IssueKind.TONE_MARK_MISSING)
    corrector = ScriptedCorrector((candidate("x"), report(100)))

    run(CorrectionOrchestrator(), candidate("first"), first, RetryBudget(0, 1), corrector)

    assert corrector.calls == [(candidate("first"), first)]


def test_valid_candidate_is_accepted_without_correction():
    corrector = ScriptedCorrector()
    outcome = run(CorrectionOrchestrator(), candidate("ok"), report(100), RetryBudget(0, 1), corrector)

    assert outcome.state == CorrectionState.ACCEPTED
    assert outcome.rounds == 0
    assert corrector.calls == []


def test_no_budget_no_correction():
    corrector = ScriptedCorrector()
    outcome = run(
        CorrectionOrchestrator(), candidate("bad"), report(10, IssueKind.COVERAGE_INCOMPLETE), RetryBudget(0, 0), corrector
    )
    assert outcome.state == CorrectionState.ACCEPTED
    assert corrector.calls == []


def test_score_above_ceiling_is_left_alone():
    corrector = ScriptedCorrector()
    outcome = run(
        CorrectionOrchestrator(score_ceiling=50),
        candidate("meh"),
        report(60, IssueKind.TONE_MARK_MISSING),
        RetryBudget(0, 1),
        corrector,
    )
    assert corrector.calls == []
    assert outcome.rounds == 0


def test_single_round_by_default_even_with_budget_left():
    corrector = ScriptedCorrector(
        (candidate("better"), report(60, IssueKind.TONE_MARK_MISSING)),
        (candidate("best"), report(100)),
    )
    budget = RetryBudget(0, 3)

    outcome = run(CorrectionOrchestrator(max_rounds=1), candidate("bad"), report(20, IssueKind.TONE_MARK_MISSING), budget, corrector)

    assert outcome.rounds == 1
    assert outcome.result.annotated_text == "better"
    assert budget.correction_retries_remaining == 2


def test_more_rounds_when_configured():
    corrector = ScriptedCorrector(
        (candidate("better"), report(60, IssueKind.TONE_MARK_MISSING)),
        (candidate("best"), report(100)),
    )

    outcome = run(CorrectionOrchestrator(max_rounds=3), candidate("bad"), report(20, IssueKind.TONE_MARK_MISSING), RetryBudget(0, 3), corrector)

    assert outcome.rounds == 2
    assert outcome.result.annotated_text == "best"


def test_unusable_correction_keeps_candidate():
    corrector = ScriptedCorrector((None, None))
    first = report(40, IssueKind.TONE_MARK_MISSING)

    outcome = run(CorrectionOrchestrator(), candidate("first"), first, RetryBudget(0, 1), corrector)

    assert outcome.state == CorrectionState.RESOLVED
    assert outcome.rounds == 1
    assert not outcome.replaced
    assert outcome.result.annotated_text == "first"
