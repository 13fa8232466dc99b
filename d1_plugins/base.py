"""
Base plugin contracts for analyzers and AI assessors
"""
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import httpx

from core.exceptions import NetworkError

from .types import (
    AIAssessment,
    AnalysisMetadata,
    AnalysisPayload,
    AnalysisResult,
    AnalysisType,
    AssessmentInput,
    Insights,
    ValidationResult,
    utcnow,
)


class AnalyzerPlugin(ABC):
    """Deterministic static analysis of one input"""

    type: AnalysisType
    name: str
    version: str = "1.0.0"

    @property
    def key(self) -> str:
        return f"{self.type.value}:{self.name}"

    @abstractmethod
    async def analyze(self, input: AssessmentInput) -> AnalysisResult:
        """
        Run the analysis

        Args:
            input: Repository or website to analyze

        Returns:
            AnalysisResult whose data payload matches this plugin's type
        """

    @abstractmethod
    def validate(self, result: AnalysisResult) -> ValidationResult:
        """Check a result produced by analyze"""

    @abstractmethod
    def can_handle(self, input: AssessmentInput) -> bool:
        """Whether this analyzer accepts the input"""

    async def _call_source(self, source: Callable[[str], Awaitable[Any]], target: str) -> Any:
        """Invoke a collaborator, surfacing transport failures as NetworkError"""
        try:
            return await source(target)
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                self.name,
                f"HTTP {e.response.status_code} for {target}",
                upstream_status=e.response.status_code,
                response_body=e.response.text[:500],
            ) from e
        except httpx.TimeoutException as e:
            raise NetworkError(self.name, f"timed out fetching {target}", upstream_status=504) from e
        except httpx.HTTPError as e:
            raise NetworkError(self.name, str(e) or type(e).__name__) from e

    def _result(self, payload: AnalysisPayload, started: float) -> AnalysisResult:
        return AnalysisResult(
            type=self.type,
            data=payload,
            metadata=AnalysisMetadata(
                analyzer=self.name,
                version=self.version,
                timestamp=utcnow(),
                duration=time.monotonic() - started,
            ),
        )


class AIAssessorPlugin(ABC):
    """AI-derived assessment of an analyzer's output"""

    type: AnalysisType
    name: str
    version: str = "1.0.0"

    @property
    def key(self) -> str:
        return f"{self.type.value}:{self.name}"

    @abstractmethod
    async def assess(self, analysis: AnalysisResult) -> AIAssessment:
        """Assess a static analysis result"""

    @abstractmethod
    def generate_insights(self, assessment: AIAssessment) -> Insights:
        """Summarize an assessment into findings and recommendations"""

    def can_handle(self, analysis: AnalysisResult) -> bool:
        return analysis.type == self.type
