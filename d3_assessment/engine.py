"""
Scoring Engine

Top-level entry point for an assessment. Owns the engine configuration and
decides, for every failure, whether it propagates or is replaced by a
degraded result:

- static analysis fails or the deadline passes: zero-score fallback result
- AI assessment fails: static-only result with one AI_ASSESSMENT_FAILED record
- fallback_to_static disabled: the original error propagates unchanged
"""
import dataclasses
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from core.config import Settings
from core.exceptions import DeadlineExceededError, ErrorKind, kind_of
from core.logging import get_logger
from core.metrics import metrics
from core.retry import Deadline, RetryExhausted, linear_backoff, retry_async
from d1_plugins.registry import PluginRegistry
from d1_plugins.types import AnalysisData, AnalysisResult, AssessmentInput, utcnow
from d2_scoring.categories import DEFAULT_CATEGORY_WEIGHTS, category_scores, overall_score, validate_weights
from d2_scoring.confidence import confidence_scores
from d2_scoring.fallback import build_fallback_result
from d2_scoring.insights import static_findings, static_recommendations, unify_findings, unify_recommendations
from d2_scoring.legacy import convert_to_legacy_format
from d2_scoring.types import (
    AssessmentMetadata,
    AssessmentResult,
    AssessmentScores,
    ErrorRecord,
    Severity,
    WarningRecord,
    new_assessment_id,
)

from .orchestrator import AssessmentOrchestrator, OrchestratorConfig, SecondaryResults

logger = get_logger(__name__, domain="d3")

AI_FAILURE_CODE = "AI_ASSESSMENT_FAILED"

# Error kinds worth another AI attempt once the registry has given up
TRANSIENT_KINDS = (ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED)


def default_confidence_thresholds() -> Dict[str, float]:
    return {"high": 0.8, "medium": 0.6, "low": 0.4}


@dataclass
class EngineConfig:
    enable_ai_assessment: bool = True
    max_retries: int = 2
    retry_delay_seconds: float = 1.0
    fallback_to_static: bool = True
    timeout_seconds: Optional[float] = 30.0
    category_weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS))
    confidence_thresholds: Mapping[str, float] = field(default_factory=default_confidence_thresholds)
    version: str = "1.0.0"

    def __post_init__(self):
        self.category_weights = validate_weights(self.category_weights)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            enable_ai_assessment=settings.enable_ai_assessment,
            max_retries=settings.assessment_max_retries,
            retry_delay_seconds=settings.plugin_retry_delay_seconds,
            fallback_to_static=settings.fallback_to_static,
            timeout_seconds=settings.assessment_timeout_seconds,
            version=settings.app_version,
        )


def is_transient(error: BaseException) -> bool:
    return not isinstance(error, DeadlineExceededError) and kind_of(error) in TRANSIENT_KINDS


class ScoringEngine:
    """Turns one AssessmentInput into an AssessmentResult or a propagated error"""

    def __init__(
        self,
        registry: PluginRegistry,
        orchestrator: Optional[AssessmentOrchestrator] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.registry = registry
        self.orchestrator = orchestrator or AssessmentOrchestrator(registry, OrchestratorConfig())
        self.config = config or EngineConfig()

    async def assess(self, input: AssessmentInput) -> AssessmentResult:
        """
        Assess a repository or website

        Args:
            input: What to assess

        Returns:
            AssessmentResult, degraded when fallback_to_static allows it

        Raises:
            ReadinessError: Any unrecovered failure when fallback_to_static is off
        """
        started = time.monotonic()
        deadline = Deadline(self.config.timeout_seconds, operation=f"{input.type.value} assessment")
        log = logger.for_assessment(input.type.value, input.url)

        try:
            result = await self._assess(input, deadline, started, log)
        except Exception as e:
            duration = time.monotonic() - started
            metrics.track_error(type(e).__name__, "d3")
            if not self.config.fallback_to_static:
                metrics.track_assessment(input.type.value, duration, "error")
                raise
            log.error(f"Assessment failed, returning fallback result: {e}")
            metrics.track_assessment(input.type.value, duration, "fallback")
            return build_fallback_result(input, e, analysis_time=duration, version=self.config.version)

        status = "degraded" if result.metadata.fallback_used else "success"
        metrics.track_assessment(input.type.value, result.metadata.analysis_time, status)
        confidence = self.confidence_level(result.scores.confidence.overall)
        log.info(
            f"Assessment complete: overall={result.scores.overall.value:.1f} status={status} confidence={confidence}",
            extra={"assessment_id": result.id},
        )
        return result

    async def _assess(self, input: AssessmentInput, deadline: Deadline, started: float, log) -> AssessmentResult:
        analysis = await self.registry.execute_analysis(input, deadline=deadline)
        static_time = time.monotonic() - started

        if not self.config.enable_ai_assessment or self.registry.get_ai_assessor(input.type) is None:
            if self.config.enable_ai_assessment:
                log.info(f"No AI assessor registered for {input.type.value}, scoring static analysis only")
            secondary = await self.orchestrator.secondary(input, analysis, deadline)
            return self._static_result(input, analysis, secondary, started, static_time)

        attempts = 0

        async def run_pipeline() -> AssessmentResult:
            nonlocal attempts
            attempts += 1
            return await self.orchestrator.run(input, analysis=analysis, deadline=deadline)

        try:
            result = await retry_async(
                run_pipeline,
                max_attempts=self.config.max_retries,
                backoff=linear_backoff(self.config.retry_delay_seconds),
                is_retryable=is_transient,
                deadline=deadline,
            )
        except DeadlineExceededError:
            raise
        except Exception as e:
            error = e.last_error if isinstance(e, RetryExhausted) else e
            if not self.config.fallback_to_static:
                raise error
            log.warning(f"AI assessment failed, continuing with static analysis only: {error}")
            record = ErrorRecord(
                code=AI_FAILURE_CODE,
                message=f"AI assessment failed, using static analysis only: {error}",
                category="ai",
                timestamp=utcnow(),
                recoverable=True,
            )
            secondary = await self.orchestrator.secondary(input, analysis, deadline)
            return self._static_result(
                input,
                analysis,
                secondary,
                started,
                static_time,
                retry_count=max(0, attempts - 1),
                errors=(record,),
            )

        return self._finish(result, started, retry_count=attempts - 1)

    def _static_result(
        self,
        input: AssessmentInput,
        analysis: AnalysisResult,
        secondary: SecondaryResults,
        started: float,
        static_time: float,
        retry_count: int = 0,
        errors: Tuple[ErrorRecord, ...] = (),
    ) -> AssessmentResult:
        """Result scored from the static analysis alone"""
        data = secondary.merge_into(AnalysisData.from_result(analysis))

        confidence = confidence_scores(data)
        categories = category_scores(data, static_confidence=confidence.static_analysis)
        overall = overall_score(categories, self.config.category_weights, confidence.overall)

        result = AssessmentResult(
            id=new_assessment_id(),
            type=input.type,
            url=input.url,
            timestamp=utcnow(),
            scores=AssessmentScores(overall=overall, categories=categories, confidence=confidence),
            analysis=data,
            findings=tuple(unify_findings(static_findings(data))),
            recommendations=tuple(unify_recommendations(static_recommendations(data))),
            metadata=AssessmentMetadata(
                version=self.config.version,
                static_analysis_time=static_time,
                fallback_used=bool(errors),
                errors=errors,
                warnings=secondary.warnings,
            ),
        )
        return self._finish(result, started, retry_count=retry_count)

    def _finish(self, result: AssessmentResult, started: float, retry_count: int = 0) -> AssessmentResult:
        """Stamp total time and retries, and flag low-confidence results"""
        warnings = result.metadata.warnings
        low = self.config.confidence_thresholds.get("low", 0.0)
        if result.scores.confidence.overall < low:
            warnings = warnings + (
                WarningRecord(
                    code="LOW_CONFIDENCE",
                    message=f"Overall confidence {result.scores.confidence.overall:.2f} is below {low:.2f}",
                    category="confidence",
                    timestamp=utcnow(),
                    impact=Severity.MEDIUM,
                ),
            )

        metadata = dataclasses.replace(
            result.metadata,
            analysis_time=time.monotonic() - started,
            retry_count=retry_count,
            warnings=warnings,
        )
        return dataclasses.replace(result, metadata=metadata)

    def confidence_level(self, confidence: float) -> str:
        """Name of the highest threshold the confidence reaches"""
        for level in ("high", "medium", "low"):
            if confidence >= self.config.confidence_thresholds.get(level, 1.0):
                return level
        return "very_low"

    @staticmethod
    def convert_to_legacy_format(result: AssessmentResult) -> Dict[str, Any]:
        return convert_to_legacy_format(result)
