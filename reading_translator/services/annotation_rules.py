"""
Rule primitives for reading-annotation checks and the generic scorer that
runs them.

Every language row in the profile table is a list of these rules plus a
scoring policy; ``score_annotation`` is the only code that knows how to
turn them into a ``ValidationReport``.
"""

import math
import re
import unicodedata
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, List, Mapping, NamedTuple, Optional, Tuple

from reading_translator.logconf import logger
from reading_translator.models.validation_report import Issue, IssueKind, ValidationReport
from reading_translator.utils.scripts import READING_GAP, char_class, count_chars

RETENTION_FLOOR = 0.3
COVERAGE_FLOOR = 0.9


class Segment(NamedTuple):
    base: str
    reading: str
    text: str


class Finding(NamedTuple):
    issue: Issue
    suggestion: str


@dataclass(frozen=True)
class RuleContext:
    original: str
    annotated: str
    segments: Tuple[Segment, ...]
    script_char_count: int


def _fill(template: str, match: Optional[re.Match] = None, **values) -> str:
    if match is not None:
        values.setdefault("match", match.group(0))
        for idx, group in enumerate(match.groups(), start=1):
            values.setdefault(f"g{idx}", group or "")
    return template.format_map(values)


@dataclass(frozen=True)
class PatternRule:
    """Reports once when ``pattern`` occurs anywhere in the annotated text."""

    kind: IssueKind
    pattern: re.Pattern
    description: str
    suggestion: str
    normalize: Optional[str] = None

    def evaluate(self, ctx: RuleContext) -> List[Finding]:
        text = ctx.annotated
        if self.normalize:
            text = unicodedata.normalize(self.normalize, text)
        matches = list(self.pattern.finditer(text))
        if not matches:
            return []
        sample = ", ".join(m.group(0) for m in matches[:3])
        first = matches[0]
        return [
            Finding(
                Issue(self.kind, _fill(self.description, first, matches=sample, count=len(matches))),
                _fill(self.suggestion, first),
            )
        ]


@dataclass(frozen=True)
class SegmentRule:
    """
    Per annotated word: when the base matches ``base_pattern`` the reading
    must match ``required`` and must not match ``forbidden``.
    """

    kind: IssueKind
    base_pattern: re.Pattern
    description: str
    suggestion: str
    required: Optional[re.Pattern] = None
    forbidden: Optional[re.Pattern] = None

    def evaluate(self, ctx: RuleContext) -> List[Finding]:
        findings = []
        for segment in ctx.segments:
            if not self.base_pattern.search(segment.base):
                continue
            if self.required is not None and self.required.search(segment.reading):
                continue
            if self.forbidden is not None and not self.forbidden.search(segment.reading):
                continue
            values = segment._asdict()
            findings.append(
                Finding(
                    Issue(self.kind, self.description.format_map(values)),
                    self.suggestion.format_map(values),
                )
            )
        return findings


@dataclass(frozen=True)
class SyllableRule:
    """Every syllable of every reading must match ``required`` unless exempt."""

    kind: IssueKind
    required: re.Pattern
    description: str
    suggestion: str
    exempt: frozenset = frozenset()
    separator: re.Pattern = re.compile(r"[\s\-·']+")
    strip_chars: str = ".,;:!?\"()"

    def evaluate(self, ctx: RuleContext) -> List[Finding]:
        findings = []
        for segment in ctx.segments:
            for syllable in self.separator.split(segment.reading):
                syllable = syllable.strip(self.strip_chars)
                if not syllable or syllable.lower() in self.exempt:
                    continue
                if self.required.search(syllable):
                    continue
                findings.append(
                    Finding(
                        Issue(self.kind, self.description.format(syllable=syllable, base=segment.base)),
                        self.suggestion.format(syllable=syllable, base=segment.base),
                    )
                )
        return findings


@dataclass(frozen=True)
class AlignedSyllableRule:
    """
    When a reading splits into exactly one part per base syllable, each
    listed syllable must not be romanized as its known confusable.
    ``expectations`` maps syllable -> (expected, confusable).
    """

    kind: IssueKind
    syllable_chars: re.Pattern
    expectations: Mapping[str, Tuple[str, str]]
    description: str
    suggestion: str
    separator: re.Pattern = re.compile(r"[\s\-]+")

    def evaluate(self, ctx: RuleContext) -> List[Finding]:
        findings = []
        for segment in ctx.segments:
            syllables = self.syllable_chars.findall(segment.base)
            parts = [p for p in self.separator.split(segment.reading.lower()) if p]
            if len(parts) != len(syllables):
                continue
            for syllable, part in zip(syllables, parts):
                if syllable not in self.expectations:
                    continue
                expected, confusable = self.expectations[syllable]
                if part != confusable:
                    continue
                values = dict(syllable=syllable, expected=expected, confusable=confusable, segment=segment.text)
                findings.append(
                    Finding(
                        Issue(self.kind, self.description.format_map(values)),
                        self.suggestion.format_map(values),
                    )
                )
        return findings


@dataclass(frozen=True)
class PresenceRule:
    """Texts with more than ``min_script_chars`` characters must contain ``pattern`` somewhere."""

    kind: IssueKind
    pattern: re.Pattern
    min_script_chars: int
    description: str
    suggestion: str

    def evaluate(self, ctx: RuleContext) -> List[Finding]:
        if ctx.script_char_count <= self.min_script_chars or self.pattern.search(ctx.annotated):
            return []
        return [Finding(Issue(self.kind, self.description), self.suggestion)]


def _squash(reading: str) -> str:
    return re.sub(r"[\s\-]+", "", reading).casefold()


@dataclass(frozen=True)
class CompoundRule:
    """
    Dictionary check for multi-character words with a fixed reading. The
    word may be annotated as a whole (``今日(きょう)``) or character by
    character (``今(きょ)日(う)``); the joined readings are compared.
    """

    compounds: Mapping[str, str]
    script_body: str
    _patterns: Mapping[str, re.Pattern] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # compiled once at load; the rule is shared read-only across invocations
        patterns = MappingProxyType({word: self._compile(word) for word in self.compounds})
        object.__setattr__(self, "_patterns", patterns)

    def _compile(self, word: str) -> re.Pattern:
        gap = char_class(READING_GAP) + "*"
        parts = [re.escape(ch) + r"(?:\(([^()]*)\))?" for ch in word[:-1]]
        parts.append(re.escape(word[-1]) + gap + r"\(([^()]*)\)")
        return re.compile(f"(?<!{char_class(self.script_body)})" + "".join(parts))

    def evaluate(self, ctx: RuleContext) -> List[Finding]:
        findings = []
        for word, canonical in self.compounds.items():
            if word not in ctx.original:
                continue
            match = self._patterns[word].search(ctx.annotated)
            if match is None:
                continue
            reading = "".join(g for g in match.groups() if g)
            if _squash(reading) == _squash(canonical):
                continue
            findings.append(
                Finding(
                    Issue(IssueKind.COMPOUND_READING_ERROR, f"Incorrect compound reading: {match.group(0)}"),
                    f"Use standard reading: {word}({canonical})",
                )
            )
        return findings


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RatioScoring:
    """Score falls with issues per text length: ``chars_per_issue`` characters buy one tolerated issue."""

    chars_per_issue: float

    def score(self, issue_count: int, script_char_count: int, coverage_ratio: float) -> int:
        max_issues = max(1.0, script_char_count / self.chars_per_issue)
        return max(0, _round_half_up(100 - (issue_count / max_issues) * 100))


@dataclass(frozen=True)
class CoverageWeightedScoring:
    """Coverage percentage minus a fixed weight per issue, with the deduction capped."""

    weight: int = 5
    cap: int = 30

    def score(self, issue_count: int, script_char_count: int, coverage_ratio: float) -> int:
        deduction = min(issue_count * self.weight, self.cap)
        return max(0, _round_half_up(coverage_ratio * 100) - deduction)


def extract_segments(pattern: Optional[re.Pattern], text: str) -> Tuple[Segment, ...]:
    if pattern is None:
        return ()
    return tuple(
        Segment(m.group("base"), m.group("reading"), m.group(0)) for m in pattern.finditer(text)
    )


def run_rules(rules: Iterable, ctx: RuleContext) -> List[Finding]:
    findings = []
    for rule in rules:
        findings.extend(rule.evaluate(ctx))
    return findings


def score_annotation(profile, original: str, annotated: str) -> ValidationReport:
    """
    Generic validator shared by every scripted language. Pure: the same
    (profile, original, annotated) always yields the same report.
    """
    if not profile.has_script:
        return ValidationReport.nothing_to_check(f"{profile.name} text carries no reading annotation")

    original = original or ""
    annotated = annotated or ""
    total = count_chars(profile.script_chars, original)
    if total == 0:
        return ValidationReport.nothing_to_check(f"No {profile.name} characters found in text")

    reading = profile.reading_name or "reading"
    kept = count_chars(profile.script_chars, annotated)
    if kept < total * RETENTION_FLOOR:
        return ValidationReport(
            is_valid=False,
            accuracy_score=0,
            issues=(
                Issue(
                    IssueKind.BASE_SCRIPT_LOST,
                    f"Original {profile.name} text was lost: {kept} of {total} script characters remain",
                ),
            ),
            suggestions=(f"Keep the original {profile.name} text and add the {reading} in parentheses after each word",),
            coverage_ratio=kept / total,
            script_char_count=total,
            details=f"{profile.name}: base script lost",
        )

    segments = extract_segments(profile.annotation_pattern, annotated)
    covered = sum(count_chars(profile.script_chars, s.base) for s in segments)
    coverage = min(1.0, covered / total)

    findings: List[Finding] = []
    if coverage < COVERAGE_FLOOR:
        findings.append(
            Finding(
                Issue(
                    IssueKind.COVERAGE_INCOMPLETE,
                    f"Incomplete {reading} coverage - only {_round_half_up(coverage * 100)}% of {profile.name} characters are annotated",
                ),
                f"Ensure all {profile.name} words have {reading}",
            )
        )
    elif profile.strict_coverage and covered < total:
        findings.append(
            Finding(
                Issue(
                    IssueKind.MISSING_READING,
                    f"{total - covered} out of {total} characters are missing {reading}",
                ),
                f"Add {reading} to every word that needs it",
            )
        )

    ctx = RuleContext(original, annotated, segments, total)
    findings.extend(run_rules(profile.rules, ctx))

    issues = tuple(f.issue for f in findings)
    suggestions = tuple(dict.fromkeys(f.suggestion for f in findings if f.suggestion))
    score = profile.scoring.score(len(issues), total, coverage)
    logger.debug(f"{profile.code}: {len(issues)} issue(s), coverage {coverage:.2f}, score {score}")
    return ValidationReport(
        is_valid=not issues,
        accuracy_score=score,
        issues=issues,
        suggestions=suggestions,
        coverage_ratio=coverage,
        script_char_count=total,
        details=f"{profile.name}: {covered}/{total} characters annotated, {len(issues)} issue(s)",
    )
