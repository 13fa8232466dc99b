"""
Fallback result

Deterministic zero-score AssessmentResult used in place of a propagated
error when degraded operation is allowed.
"""

from d1_plugins.types import AnalysisType, AssessmentInput, utcnow

from .types import (
    AssessmentMetadata,
    AssessmentResult,
    AssessmentScores,
    CategoryScores,
    ConfidenceScores,
    ErrorRecord,
    Finding,
    Recommendation,
    Score,
    Severity,
    new_assessment_id,
)

FALLBACK_ERROR_CODE = "ASSESSMENT_FAILED"


def error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


def build_fallback_result(
    input: AssessmentInput,
    error: BaseException,
    analysis_time: float = 0.0,
    version: str = "1.0.0",
) -> AssessmentResult:
    """Every category at 0/100, one failure finding, one retry recommendation"""
    message = error_message(error)
    now = utcnow()

    return AssessmentResult(
        id=new_assessment_id(),
        type=input.type,
        url=input.url,
        timestamp=now,
        scores=AssessmentScores(
            overall=Score.zero(),
            categories=CategoryScores.zero(website=input.type == AnalysisType.WEBSITE),
            confidence=ConfidenceScores(overall=0.0, static_analysis=0.0, ai_assessment=0.0),
        ),
        findings=(
            Finding(
                id="assessment-failed",
                category="system",
                severity=Severity.HIGH,
                title="Assessment Failed",
                description=f"Assessment failed: {message}",
                evidence=(message,),
                impact="Assessment could not be completed",
            ),
        ),
        recommendations=(
            Recommendation(
                id="retry-assessment",
                category="system",
                priority=Severity.HIGH,
                title="Retry Assessment",
                description="Try running the assessment again",
                implementation=("Check URL validity", "Verify network connection", "Try again later"),
                impact="Allows assessment to complete",
                effort=Severity.LOW,
                timeline="Immediate",
            ),
        ),
        metadata=AssessmentMetadata(
            version=version,
            analysis_time=analysis_time,
            fallback_used=True,
            errors=(
                ErrorRecord(
                    code=FALLBACK_ERROR_CODE,
                    message=message,
                    category="system",
                    timestamp=now,
                    recoverable=True,
                ),
            ),
        ),
    )
