"""
D2 Scoring Module

Category scoring, confidence, findings and the fallback and legacy result
shapes for agent readiness assessments.
"""

from .categories import DEFAULT_CATEGORY_WEIGHTS, category_scores, combine_scores, overall_score, validate_weights
from .confidence import confidence_scores
from .fallback import build_fallback_result
from .legacy import convert_to_legacy_format
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
    WarningRecord,
)

__all__ = [
    # Scoring
    "DEFAULT_CATEGORY_WEIGHTS",
    "build_fallback_result",
    "category_scores",
    "combine_scores",
    "confidence_scores",
    "convert_to_legacy_format",
    "overall_score",
    "validate_weights",
    # Types
    "AssessmentMetadata",
    "AssessmentResult",
    "AssessmentScores",
    "CategoryScores",
    "ConfidenceScores",
    "ErrorRecord",
    "Finding",
    "Recommendation",
    "Score",
    "Severity",
    "WarningRecord",
]
