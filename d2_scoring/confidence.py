"""
Confidence Scoring

Every function here returns a value on the 0-1 scale. Sources that report
0-100 (AI sub-analyses, the business-type classifier) are divided by 100 on
the way in.
"""
from typing import Optional

from d1_plugins.types import AIAssessment, AnalysisData, BusinessTypeAnalysis

from .types import Confidence, ConfidenceScores, clamp_confidence

STATIC_BASELINE = 0.5
AI_BASELINE = 0.5


def from_percent(value: float) -> Confidence:
    return clamp_confidence(value / 100)


def static_confidence(data: AnalysisData) -> Confidence:
    """Baseline plus a fixed increment per present signal"""
    confidence = STATIC_BASELINE

    repo = data.repository
    if repo is not None:
        if repo.file_count > 0:
            confidence += 0.2
        if repo.has_readme:
            confidence += 0.1
        if repo.has_agents:
            confidence += 0.1
        if repo.has_workflows:
            confidence += 0.1

    site = data.website
    if site is not None:
        if site.content_length > 0:
            confidence += 0.2
        if site.has_structured_data:
            confidence += 0.1
        if site.contact_info:
            confidence += 0.1
        if site.technologies:
            confidence += 0.1

    return clamp_confidence(confidence)


def ai_confidence(assessment: Optional[AIAssessment]) -> Optional[Confidence]:
    """Mean sub-analysis confidence, None when no assessment exists"""
    if assessment is None:
        return None
    if assessment.detailed_analysis is None:
        return AI_BASELINE
    parts = assessment.detailed_analysis.groups()
    if not parts:
        return AI_BASELINE
    return from_percent(sum(part.confidence for _, part in parts) / len(parts))


def business_type_confidence(analysis: Optional[BusinessTypeAnalysis]) -> Optional[Confidence]:
    if analysis is None:
        return None
    return from_percent(analysis.confidence)


def confidence_scores(
    data: AnalysisData,
    assessment: Optional[AIAssessment] = None,
) -> ConfidenceScores:
    """Per-source confidences and their mean"""
    static = static_confidence(data)
    ai = ai_confidence(assessment)
    business = business_type_confidence(data.business_type)

    available = [c for c in (static, ai, business) if c is not None]
    overall = sum(available) / len(available) if available else 0.0
    return ConfidenceScores(
        overall=clamp_confidence(overall),
        static_analysis=static,
        ai_assessment=ai,
        business_type_analysis=business,
    )
