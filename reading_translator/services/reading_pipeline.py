"""
Translation + reading-annotation pipeline.

detect -> translate -> extract -> validate -> (correct) -> result. One
invocation is a sequential chain of awaits; the only shared state is the
read-only language table, so any number of invocations can run at once.
"""

import asyncio
import time
from dataclasses import replace
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from reading_translator.logconf import logger
from reading_translator.models.annotated_result import AnnotatedResult, CorrectionStatus, RetryBudget
from reading_translator.models.errors import LanguageMismatch, MalformedResponse, PipelineError
from reading_translator.models.language_profile import LanguageProfile
from reading_translator.models.validation_report import ValidationReport
from reading_translator.services import prompts
from reading_translator.services.annotation_validator import AnnotationValidator, assess_translation_quality
from reading_translator.services.correction import CorrectionOrchestrator, CorrectionOutcome
from reading_translator.services.language_profiles import LanguageProfileRegistry, registry as default_registry
from reading_translator.services.llm_provider import LLMProvider, OpenAIProvider, ProviderRequest
from reading_translator.services.response_extractor import ExtractedFields, ResponseExtractor
from reading_translator.services.retry import RetryController
from reading_translator.services.script_classifier import ScriptClassifier
from reading_translator.services.usage_tracker import NoopUsageTracker, UsageEvent, UsageTracker
from reading_translator.settings import settings

OPERATION_TYPE = "translate_with_readings"

ProgressCallback = Callable[[str], Any]


class ReadingPipeline:
    def __init__(
        self,
        provider: LLMProvider | None = None,
        registry: LanguageProfileRegistry = default_registry,
        usage_tracker: UsageTracker | None = None,
        retry_controller: RetryController | None = None,
        orchestrator: CorrectionOrchestrator | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.provider = provider or OpenAIProvider()
        self.registry = registry
        self.classifier = ScriptClassifier(registry)
        self.extractor = ResponseExtractor()
        self.validator = AnnotationValidator(registry)
        self.retry = retry_controller or RetryController(sleep=sleep)
        self.orchestrator = orchestrator or CorrectionOrchestrator()
        self.usage_tracker = usage_tracker or NoopUsageTracker()

    @staticmethod
    def new_budget() -> RetryBudget:
        return RetryBudget(
            provider_retries_remaining=settings.provider_retry_budget,
            correction_retries_remaining=settings.correction_budget,
        )

    async def process(
        self,
        text: str,
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Union[AnnotatedResult, PipelineError]:
        """
        Returns the best result found, or the single error that ended the
        invocation. Never raises ``PipelineError``.
        """
        started = time.perf_counter()
        target_language = target_language or settings.default_target_language
        budget = self.new_budget()
        metadata: Dict[str, Any] = {
            "target_language": target_language,
            "source_hint": source_language,
            "text_length": len(text or ""),
        }

        try:
            outcome = await self._run(text or "", target_language, source_language, budget, on_progress, metadata)
        except PipelineError as e:
            logger.warning("Pipeline failed (%s): %s", e.kind, e)
            metadata["error_kind"] = e.kind
            outcome = e

        metadata["provider_retries_used"] = settings.provider_retry_budget - budget.provider_retries_remaining
        metadata["corrections_used"] = settings.correction_budget - budget.correction_retries_remaining
        await self._record(
            UsageEvent(
                operation_type=OPERATION_TYPE,
                success=isinstance(outcome, AnnotatedResult),
                processing_time_ms=int((time.perf_counter() - started) * 1000),
                metadata=metadata,
            )
        )
        return outcome

    async def _run(
        self,
        text: str,
        target_language: str,
        source_language: Optional[str],
        budget: RetryBudget,
        on_progress: Optional[ProgressCallback],
        metadata: Dict[str, Any],
    ) -> AnnotatedResult:
        if not text.strip():
            raise PipelineError("Text is empty")

        self._progress(on_progress, "detecting")
        hint = source_language if source_language and source_language.strip().lower() != "auto" else None
        if hint and not self.classifier.matches_language(text, hint):
            raise LanguageMismatch(hint, self.classifier.classify(text))
        source = self.registry.get(self.classifier.classify(text, forced=hint))
        target = self.registry.get(target_language)
        metadata["source_language"] = source.code

        self._progress(on_progress, "translating")
        raw = await self._complete(prompts.translation_request(text, source, target), budget)
        fields = self.extractor.extract(raw, require_annotation=source.has_script)
        if isinstance(fields, MalformedResponse):
            fields = await self._repair_format(text, source, target, raw, fields, budget)
        metadata["extraction_strategy"] = fields.strategy
        candidate = self._candidate(text, source, fields)

        self._progress(on_progress, "validating")
        report = self._evaluate(text, source, candidate)
        if self.orchestrator.should_correct(report, budget):
            self._progress(on_progress, "correcting")
        outcome = await self.orchestrator.run(
            candidate,
            report,
            budget,
            request_correction=partial(self._request_correction, text, source, target, budget),
            evaluate=partial(self._evaluate, text, source),
        )

        result = replace(
            outcome.result,
            validation=outcome.report,
            correction_status=self._status(outcome),
        )
        quality = assess_translation_quality(result.translated_text, target.code, len(text), self.registry)
        if quality.needs_verification:
            logger.warning("Translation quality looks low (%d): %s", quality.score, "; ".join(quality.reasons))
        metadata.update(
            accuracy_score=outcome.report.accuracy_score,
            correction_status=result.correction_status.value,
            correction_rounds=outcome.rounds,
            translation_quality=quality.score,
        )
        self._progress(on_progress, "done")
        return result

    async def _complete(self, request: ProviderRequest, budget: RetryBudget) -> str:
        return await self.retry.call(lambda: self.provider.complete(request), budget)

    async def _repair_format(
        self,
        text: str,
        source: LanguageProfile,
        target: LanguageProfile,
        raw: str,
        failure: MalformedResponse,
        budget: RetryBudget,
    ) -> ExtractedFields:
        """A malformed reply cannot be validated; one correction retry buys a reformatted answer."""
        if not budget.consume_correction():
            raise failure
        logger.info("Model output was malformed, asking for a reformatted answer")
        raw = await self._complete(prompts.format_repair_request(text, source, target, raw), budget)
        fields = self.extractor.extract(raw, require_annotation=source.has_script)
        if isinstance(fields, MalformedResponse):
            raise fields
        return fields

    @staticmethod
    def _candidate(text: str, source: LanguageProfile, fields: ExtractedFields) -> AnnotatedResult:
        annotated = fields.annotated_text if fields.annotated_text is not None else text
        if source.postprocess is not None:
            annotated = source.postprocess(text, annotated)
        return AnnotatedResult(
            source_text=text,
            annotated_text=annotated,
            translated_text=fields.translated_text,
            language_code=source.code,
        )

    def _evaluate(self, text: str, source: LanguageProfile, candidate: AnnotatedResult) -> ValidationReport:
        return self.validator.validate(text, candidate.annotated_text, source.code)

    async def _request_correction(
        self,
        text: str,
        source: LanguageProfile,
        target: LanguageProfile,
        budget: RetryBudget,
        candidate: AnnotatedResult,
        report: ValidationReport,
    ) -> Optional[AnnotatedResult]:
        request = prompts.correction_request(text, source, target, candidate, report)
        try:
            raw = await self._complete(request, budget)
        except PipelineError as e:
            logger.warning("Corrective request failed (%s): %s", e.kind, e)
            return None
        fields = self.extractor.extract(raw, require_annotation=True)
        if isinstance(fields, MalformedResponse):
            return None
        return self._candidate(text, source, fields)

    @staticmethod
    def _status(outcome: CorrectionOutcome) -> CorrectionStatus:
        if outcome.rounds == 0:
            return CorrectionStatus.NOT_NEEDED if outcome.report.is_valid else CorrectionStatus.SKIPPED
        return CorrectionStatus.ACCEPTED if outcome.replaced else CorrectionStatus.REJECTED

    async def _record(self, event: UsageEvent) -> None:
        try:
            await self.usage_tracker.record(event)
        except Exception as e:
            logger.warning("Usage tracking failed: %s", e)

    @staticmethod
    def _progress(callback: Optional[ProgressCallback], stage: str) -> None:
        if callback is None:
            return
        try:
            callback(stage)
        except Exception as e:
            logger.warning("Progress callback failed at %s: %s", stage, e)
