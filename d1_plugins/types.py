"""
D1 Plugin Types

Tagged payload types exchanged between analyzers, assessors and the scoring
engine. Each payload class carries its AnalysisType in ``kind`` so consumers
can match on the payload instead of probing for field presence.
"""
import dataclasses
import hashlib
import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple


class AnalysisType(str, Enum):
    """Domain type a plugin is registered under"""

    REPOSITORY = "repository"
    WEBSITE = "website"
    BUSINESS_TYPE = "business-type"
    FILE_SIZE = "file-size"


# Input types accepted at the boundary
INPUT_TYPES = (AnalysisType.REPOSITORY, AnalysisType.WEBSITE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up"""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class AssessmentInput:
    """One request to assess a repository or website"""

    type: AnalysisType
    url: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "type", AnalysisType(self.type))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)


# --- repository -------------------------------------------------------------


@dataclass(frozen=True)
class LargeFile:
    path: str
    size_mb: float
    file_type: str  # binary, text, image, video, other
    agent_impact: str  # blocking, warning, info


@dataclass(frozen=True)
class CriticalFile:
    path: str
    size_kb: float
    optimal_size_kb: float
    status: str  # optimal, acceptable, problematic


@dataclass(frozen=True)
class CompatibilityStatus:
    agent: str
    score: int
    status: str  # compliant, warning, blocked
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AgentCompatibility:
    agents: Mapping[str, CompatibilityStatus]
    overall: int


@dataclass(frozen=True)
class FileSizeAnalysis:
    """Context-window compatibility of a repository's files"""

    kind: ClassVar[AnalysisType] = AnalysisType.FILE_SIZE

    total_size_mb: float
    large_files: Tuple[LargeFile, ...]
    critical_files: Tuple[CriticalFile, ...]
    agent_compatibility: AgentCompatibility
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RepositoryAnalysis:
    kind: ClassVar[AnalysisType] = AnalysisType.REPOSITORY

    has_readme: bool = False
    has_contributing: bool = False
    has_agents: bool = False
    has_license: bool = False
    has_workflows: bool = False
    has_tests: bool = False
    languages: Tuple[str, ...] = ()
    error_handling: bool = False
    file_count: int = 0
    lines_of_code: int = 0
    repository_size_mb: float = 0.0
    readme_content: Optional[str] = None
    contributing_content: Optional[str] = None
    agents_content: Optional[str] = None
    workflow_files: Tuple[str, ...] = ()
    test_files: Tuple[str, ...] = ()
    file_size_analysis: Optional[FileSizeAnalysis] = None


# --- website ----------------------------------------------------------------


@dataclass(frozen=True)
class FeatureScore:
    score: float = 0.0
    max_score: float = 100.0
    details: Tuple[str, ...] = ()
    missing: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AgentReadinessFeatures:
    information_gathering: FeatureScore = FeatureScore()
    direct_booking: FeatureScore = FeatureScore()
    faq_support: FeatureScore = FeatureScore()
    task_management: FeatureScore = FeatureScore()
    personalization: FeatureScore = FeatureScore()


@dataclass(frozen=True)
class SocialMediaLink:
    platform: str
    url: str


@dataclass(frozen=True)
class WebsiteAnalysis:
    kind: ClassVar[AnalysisType] = AnalysisType.WEBSITE

    url: str
    page_title: Optional[str] = None
    meta_description: Optional[str] = None
    has_structured_data: bool = False
    has_open_graph: bool = False
    has_twitter_cards: bool = False
    has_sitemap: bool = False
    has_robots_txt: bool = False
    has_favicon: bool = False
    has_manifest: bool = False
    has_service_worker: bool = False
    content_length: int = 0
    technologies: Tuple[str, ...] = ()
    contact_info: Tuple[str, ...] = ()
    social_media_links: Tuple[SocialMediaLink, ...] = ()
    locations: Tuple[str, ...] = ()
    agent_readiness_features: AgentReadinessFeatures = AgentReadinessFeatures()


@dataclass(frozen=True)
class BusinessTypeAnalysis:
    """Business classification and agentic-flow scores for a website"""

    kind: ClassVar[AnalysisType] = AnalysisType.BUSINESS_TYPE

    business_type: str
    confidence: float  # 0-100
    overall_score: float  # 0-100
    agentic_flows: Mapping[str, float] = field(default_factory=dict)
    findings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()


AnalysisPayload = RepositoryAnalysis | WebsiteAnalysis | BusinessTypeAnalysis | FileSizeAnalysis


@dataclass(frozen=True)
class AnalysisMetadata:
    analyzer: str
    version: str
    timestamp: datetime
    duration: float  # seconds


@dataclass(frozen=True)
class AnalysisResult:
    """Output of one analyzer run; read-only after construction"""

    type: AnalysisType
    data: AnalysisPayload
    metadata: AnalysisMetadata


@dataclass(frozen=True)
class AnalysisData:
    """Canonical combination of the payloads known for one input"""

    repository: Optional[RepositoryAnalysis] = None
    website: Optional[WebsiteAnalysis] = None
    business_type: Optional[BusinessTypeAnalysis] = None
    file_size: Optional[FileSizeAnalysis] = None

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisData":
        data = result.data
        if isinstance(data, RepositoryAnalysis):
            return cls(repository=data, file_size=data.file_size_analysis)
        if isinstance(data, WebsiteAnalysis):
            return cls(website=data)
        if isinstance(data, BusinessTypeAnalysis):
            return cls(business_type=data)
        if isinstance(data, FileSizeAnalysis):
            return cls(file_size=data)
        raise TypeError(f"Unknown analysis payload: {type(data).__name__}")


# --- AI assessment ----------------------------------------------------------

# Sub-metric names per detailed analysis group, each scored 0-20
SUB_METRICS: Dict[str, Tuple[str, ...]] = {
    "instruction_clarity": (
        "step_by_step_quality",
        "command_clarity",
        "environment_setup",
        "error_handling",
        "dependency_specification",
    ),
    "workflow_automation": (
        "ci_cd_quality",
        "test_automation",
        "build_scripts",
        "deployment_automation",
        "monitoring_logging",
    ),
    "context_efficiency": (
        "information_cohesion",
        "terminology_consistency",
        "cross_reference_quality",
        "chunking_optimization",
    ),
    "risk_compliance": (
        "security_practices",
        "compliance_alignment",
        "safety_guidelines",
        "governance_documentation",
    ),
    "integration_structure": (
        "code_organization",
        "modularity",
        "api_design",
        "dependencies",
    ),
    "file_size_optimization": (
        "critical_file_compliance",
        "large_file_management",
        "context_window_optimization",
        "agent_compatibility",
    ),
}

SUB_METRIC_MAX = 20.0


@dataclass(frozen=True)
class SubAnalysis:
    metrics: Mapping[str, float]
    findings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    confidence: float = 0.0  # 0-100, as reported by the model


@dataclass(frozen=True)
class DetailedAIAnalysis:
    instruction_clarity: Optional[SubAnalysis] = None
    workflow_automation: Optional[SubAnalysis] = None
    context_efficiency: Optional[SubAnalysis] = None
    risk_compliance: Optional[SubAnalysis] = None
    integration_structure: Optional[SubAnalysis] = None
    file_size_optimization: Optional[SubAnalysis] = None

    def groups(self) -> List[Tuple[str, SubAnalysis]]:
        """Present sub-analyses in declaration order"""
        return [
            (f.name, getattr(self, f.name))
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        ]


@dataclass(frozen=True)
class AIAssessment:
    enabled: bool
    instruction_clarity: bool
    workflow_automation: bool
    context_efficiency: bool
    risk_compliance: bool
    overall_success: bool
    reason: str = ""
    detailed_analysis: Optional[DetailedAIAnalysis] = None

    @property
    def flags(self) -> Tuple[bool, ...]:
        return (
            self.instruction_clarity,
            self.workflow_automation,
            self.context_efficiency,
            self.risk_compliance,
        )


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    score: int = 0

    @classmethod
    def from_checks(cls, errors: List[str], warnings: List[str]) -> "ValidationResult":
        if errors:
            score = 0
        elif warnings:
            score = 80
        else:
            score = 100
        return cls(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings), score=score)


@dataclass(frozen=True)
class Insights:
    key_findings: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    confidence: float  # 0-1
    risk_level: str  # low, medium, high


# --- cache keys -------------------------------------------------------------


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_to_jsonable(v) for v in value]
        return sorted(items, key=repr) if isinstance(value, (set, frozenset)) else items
    return value


def stable_key(kind: str, value: Any) -> str:
    """Deterministic cache key for an operation kind and its input"""
    key_json = json.dumps(_to_jsonable(value), sort_keys=True, default=str)
    key_hash = hashlib.sha256(key_json.encode()).hexdigest()[:16]
    return f"{kind}:{key_hash}"
