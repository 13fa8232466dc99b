"""
D2 Scoring Types

Scores, findings and the terminal AssessmentResult envelope. All confidence
values in this module use one scale: a float between 0 and 1.
"""
import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional, Tuple

from d1_plugins.types import AIAssessment, AnalysisData, AnalysisType

# Canonical categories that carry the configured weights
CORE_CATEGORIES = (
    "documentation",
    "instruction_clarity",
    "workflow_automation",
    "risk_compliance",
    "integration_structure",
    "file_size_optimization",
)

# Website-only categories, reported but not weighted
WEBSITE_CATEGORIES = (
    "information_architecture",
    "machine_readable_content",
    "conversational_query_readiness",
    "action_oriented_functionality",
    "personalization_context_awareness",
)

Confidence = float  # 0.0 - 1.0

DEFAULT_SCORE_CONFIDENCE: Confidence = 0.8


def new_assessment_id() -> str:
    return f"assessment_{uuid.uuid4().hex[:16]}"


def clamp_confidence(value: float) -> Confidence:
    return max(0.0, min(1.0, float(value)))


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


Priority = Severity
Effort = Severity


@dataclass(frozen=True)
class Score:
    """A value between 0 and max_value with a 0-1 confidence"""

    value: float
    max_value: float = 100.0
    confidence: Confidence = DEFAULT_SCORE_CONFIDENCE

    def __post_init__(self):
        if self.max_value <= 0:
            raise ValueError("max_value must be positive")
        object.__setattr__(self, "value", max(0.0, min(float(self.max_value), float(self.value))))
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))

    @property
    def percentage(self) -> float:
        return self.value / self.max_value * 100

    @classmethod
    def zero(cls, confidence: Confidence = 0.0) -> "Score":
        return cls(value=0.0, max_value=100.0, confidence=confidence)


@dataclass(frozen=True)
class CategoryScores:
    documentation: Score
    instruction_clarity: Score
    workflow_automation: Score
    risk_compliance: Score
    integration_structure: Score
    file_size_optimization: Score
    information_architecture: Optional[Score] = None
    machine_readable_content: Optional[Score] = None
    conversational_query_readiness: Optional[Score] = None
    action_oriented_functionality: Optional[Score] = None
    personalization_context_awareness: Optional[Score] = None

    def items(self) -> Iterator[Tuple[str, Score]]:
        """Present categories in declaration order"""
        for f in dataclasses.fields(self):
            score = getattr(self, f.name)
            if score is not None:
                yield f.name, score

    @classmethod
    def zero(cls, website: bool = False) -> "CategoryScores":
        core = {name: Score.zero() for name in CORE_CATEGORIES}
        extra = {name: Score.zero() for name in WEBSITE_CATEGORIES} if website else {}
        return cls(**core, **extra)


@dataclass(frozen=True)
class ConfidenceScores:
    overall: Confidence
    static_analysis: Optional[Confidence] = None
    ai_assessment: Optional[Confidence] = None
    business_type_analysis: Optional[Confidence] = None


@dataclass(frozen=True)
class Finding:
    id: str
    category: str
    severity: Severity
    title: str
    description: str
    evidence: Tuple[str, ...] = ()
    impact: str = ""
    confidence: Confidence = 1.0


@dataclass(frozen=True)
class Recommendation:
    id: str
    category: str
    priority: Priority
    title: str
    description: str
    implementation: Tuple[str, ...] = ()
    impact: str = ""
    effort: Effort = Severity.MEDIUM
    timeline: str = ""


@dataclass(frozen=True)
class ErrorRecord:
    code: str
    message: str
    category: str
    timestamp: datetime
    recoverable: bool


@dataclass(frozen=True)
class WarningRecord:
    code: str
    message: str
    category: str
    timestamp: datetime
    impact: Severity = Severity.LOW


@dataclass(frozen=True)
class AssessmentMetadata:
    version: str = "1.0.0"
    analysis_time: float = 0.0  # seconds
    static_analysis_time: float = 0.0
    ai_analysis_time: Optional[float] = None
    retry_count: int = 0
    fallback_used: bool = False
    errors: Tuple[ErrorRecord, ...] = ()
    warnings: Tuple[WarningRecord, ...] = ()


@dataclass(frozen=True)
class AssessmentScores:
    overall: Score
    categories: CategoryScores
    confidence: ConfidenceScores


@dataclass(frozen=True)
class AssessmentResult:
    """Terminal envelope returned by the pipeline; never mutated"""

    id: str
    type: AnalysisType
    url: str
    timestamp: datetime
    scores: AssessmentScores
    analysis: AnalysisData = field(default_factory=AnalysisData)
    ai_assessment: Optional[AIAssessment] = None
    findings: Tuple[Finding, ...] = ()
    recommendations: Tuple[Recommendation, ...] = ()
    metadata: AssessmentMetadata = field(default_factory=AssessmentMetadata)
