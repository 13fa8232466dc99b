"""
Assessment Orchestrator

Runs one assessment end to end: static analysis, AI assessment, the
type-specific secondary analysis, then unification into an AssessmentResult.
Steps run strictly in sequence since each consumes the previous one's output.
"""
import dataclasses
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.config import Settings
from core.exceptions import DeadlineExceededError
from core.logging import get_logger
from core.metrics import metrics
from core.retry import Deadline
from d1_plugins.registry import PluginRegistry
from d1_plugins.types import (
    AIAssessment,
    AnalysisData,
    AnalysisResult,
    AnalysisType,
    AssessmentInput,
    BusinessTypeAnalysis,
    FileSizeAnalysis,
    RepositoryAnalysis,
    utcnow,
)
from d2_scoring.categories import ai_category_scores, category_scores
from d2_scoring.confidence import confidence_scores
from d2_scoring.insights import (
    ai_recommendations,
    ai_summary_findings,
    business_type_findings,
    business_type_recommendations,
    file_size_findings,
    file_size_recommendations,
    static_findings,
    static_recommendations,
    unify_findings,
    unify_recommendations,
)
from d2_scoring.types import (
    AssessmentMetadata,
    AssessmentResult,
    AssessmentScores,
    Score,
    Severity,
    WarningRecord,
    new_assessment_id,
)

logger = get_logger(__name__, domain="d3")

# Contribution of each source to the overall readiness score
AI_SCORE_WEIGHT = 0.7
BUSINESS_TYPE_WEIGHT = 0.2
FILE_SIZE_WEIGHT = 0.1


@dataclass
class OrchestratorConfig:
    enable_business_type_analysis: bool = True
    enable_file_size_analysis: bool = True
    version: str = "1.0.0"

    @classmethod
    def from_settings(cls, settings: Settings) -> "OrchestratorConfig":
        return cls(
            enable_business_type_analysis=settings.enable_business_type_analysis,
            enable_file_size_analysis=settings.enable_file_size_analysis,
            version=settings.app_version,
        )


@dataclass
class SecondaryResults:
    business_type: Optional[BusinessTypeAnalysis] = None
    file_size: Optional[FileSizeAnalysis] = None
    warnings: Tuple[WarningRecord, ...] = ()
    failed: Tuple[AnalysisType, ...] = ()

    def merge_into(self, base: AnalysisData) -> AnalysisData:
        """
        Static data with the secondary results in place

        A secondary analysis that failed is omitted, never backfilled from a
        copy the static analyzer embedded.
        """
        business_type = self.business_type or base.business_type
        file_size = self.file_size or base.file_size
        if AnalysisType.BUSINESS_TYPE in self.failed:
            business_type = None
        if AnalysisType.FILE_SIZE in self.failed:
            file_size = None
        return dataclasses.replace(base, business_type=business_type, file_size=file_size)


def ai_average(assessment: AIAssessment) -> float:
    """Mean AI category score, or the share of passed capability flags"""
    scores = ai_category_scores(assessment)
    if scores:
        return sum(score.value for score in scores.values()) / len(scores)
    flags = assessment.flags
    return sum(1 for flag in flags if flag) / len(flags) * 100


def weighted_readiness(
    assessment: Optional[AIAssessment],
    business_type: Optional[BusinessTypeAnalysis] = None,
    file_size: Optional[FileSizeAnalysis] = None,
) -> float:
    """
    Overall readiness from the sources that succeeded

    Each term enters only when its source produced a result and the sum is
    divided by the weights that entered, so a missing secondary analysis does
    not pull the score toward zero.
    """
    terms: List[Tuple[float, float]] = []
    if assessment is not None:
        terms.append((ai_average(assessment), AI_SCORE_WEIGHT))
    if business_type is not None:
        terms.append((business_type.overall_score, BUSINESS_TYPE_WEIGHT))
    if file_size is not None:
        terms.append((file_size.agent_compatibility.overall, FILE_SIZE_WEIGHT))

    total_weight = sum(weight for _, weight in terms)
    if total_weight == 0:
        return 0.0
    return sum(value * weight for value, weight in terms) / total_weight


class AssessmentOrchestrator:
    """Sequences the analysis steps for one input against a shared registry"""

    def __init__(self, registry: PluginRegistry, config: Optional[OrchestratorConfig] = None):
        self.registry = registry
        self.config = config or OrchestratorConfig()

    async def run(
        self,
        input: AssessmentInput,
        analysis: Optional[AnalysisResult] = None,
        deadline: Optional[Deadline] = None,
    ) -> AssessmentResult:
        """
        Run the pipeline for one input

        Args:
            input: Repository or website to assess
            analysis: Static analysis already produced by the caller
            deadline: Bounds every registry call

        Raises:
            AnalysisFailedError: Static analysis exhausted its retries
            AssessmentFailedError: AI assessment exhausted its retries
        """
        started = time.monotonic()

        if analysis is None:
            analysis = await self.registry.execute_analysis(input, deadline=deadline)
        static_time = time.monotonic() - started

        ai_started = time.monotonic()
        assessment = await self.registry.execute_ai_assessment(analysis, deadline=deadline)
        ai_time = time.monotonic() - ai_started

        secondary = await self.secondary(input, analysis, deadline)

        return self.unify(
            input,
            analysis,
            assessment,
            secondary,
            analysis_time=time.monotonic() - started,
            static_analysis_time=static_time,
            ai_analysis_time=ai_time,
        )

    async def secondary(
        self, input: AssessmentInput, analysis: AnalysisResult, deadline: Optional[Deadline]
    ) -> SecondaryResults:
        if input.type == AnalysisType.WEBSITE and self.config.enable_business_type_analysis:
            result, warning = await self._best_effort(input, AnalysisType.BUSINESS_TYPE, deadline)
            failed = (AnalysisType.BUSINESS_TYPE,) if warning else ()
            return SecondaryResults(business_type=result, warnings=warning, failed=failed)

        if input.type == AnalysisType.REPOSITORY and self.config.enable_file_size_analysis:
            result, warning = await self._best_effort(input, AnalysisType.FILE_SIZE, deadline)
            if result is None and not warning and isinstance(analysis.data, RepositoryAnalysis):
                # no file-size analyzer registered; use what the repository analyzer embedded
                result = analysis.data.file_size_analysis
            failed = (AnalysisType.FILE_SIZE,) if warning else ()
            return SecondaryResults(file_size=result, warnings=warning, failed=failed)

        return SecondaryResults()

    async def _best_effort(
        self, input: AssessmentInput, analysis_type: AnalysisType, deadline: Optional[Deadline]
    ) -> Tuple[Optional[object], Tuple[WarningRecord, ...]]:
        """Run a secondary analyzer; failures are logged and omitted"""
        if self.registry.get_analyzer(analysis_type) is None:
            logger.debug(f"No {analysis_type.value} analyzer registered, skipping")
            return None, ()

        try:
            result = await self.registry.execute_analysis(input, analysis_type=analysis_type, deadline=deadline)
            return result.data, ()
        except DeadlineExceededError:
            raise
        except Exception as e:
            logger.warning(f"{analysis_type.value} analysis failed for {input.url}, omitting: {e}")
            metrics.track_secondary_failure(analysis_type.value)
            warning = WarningRecord(
                code=f"{analysis_type.name}_ANALYSIS_FAILED",
                message=str(e) or type(e).__name__,
                category=analysis_type.value,
                timestamp=utcnow(),
                impact=Severity.LOW,
            )
            return None, (warning,)

    def unify(
        self,
        input: AssessmentInput,
        analysis: AnalysisResult,
        assessment: AIAssessment,
        secondary: SecondaryResults,
        analysis_time: float = 0.0,
        static_analysis_time: float = 0.0,
        ai_analysis_time: Optional[float] = None,
    ) -> AssessmentResult:
        """Merge the step outputs into a fresh AssessmentResult"""
        data = secondary.merge_into(AnalysisData.from_result(analysis))

        confidence = confidence_scores(data, assessment)
        categories = category_scores(data, assessment, static_confidence=confidence.static_analysis)
        overall = weighted_readiness(assessment, data.business_type, data.file_size)

        findings = unify_findings(
            ai_summary_findings(assessment),
            business_type_findings(data.business_type),
            file_size_findings(data.file_size),
            static_findings(data),
        )
        recommendations = unify_recommendations(
            ai_recommendations(assessment),
            business_type_recommendations(data.business_type),
            file_size_recommendations(data.file_size),
            static_recommendations(data),
        )

        return AssessmentResult(
            id=new_assessment_id(),
            type=input.type,
            url=input.url,
            timestamp=utcnow(),
            scores=AssessmentScores(
                overall=Score(overall, 100.0, confidence.overall),
                categories=categories,
                confidence=confidence,
            ),
            analysis=data,
            ai_assessment=assessment,
            findings=tuple(findings),
            recommendations=tuple(recommendations),
            metadata=AssessmentMetadata(
                version=self.config.version,
                analysis_time=analysis_time,
                static_analysis_time=static_analysis_time,
                ai_analysis_time=ai_analysis_time,
                warnings=secondary.warnings,
            ),
        )
