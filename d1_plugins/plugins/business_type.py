"""
Business-type analyzer plugin

Secondary analysis for websites. The keyword classifier lives in a
collaborator; this plugin checks that its verdict is usable.
"""
import time
from typing import Awaitable, Callable

from ..base import AnalyzerPlugin
from ..types import AnalysisResult, AnalysisType, AssessmentInput, BusinessTypeAnalysis, ValidationResult
from .website import is_website_url

BusinessTypeSource = Callable[[str], Awaitable[BusinessTypeAnalysis]]

LOW_CONFIDENCE = 50


class BusinessTypeAnalyzer(AnalyzerPlugin):
    type = AnalysisType.BUSINESS_TYPE
    name = "business-type-analyzer"
    version = "1.0.0"

    def __init__(self, source: BusinessTypeSource):
        self.source = source

    def can_handle(self, input: AssessmentInput) -> bool:
        return input.type == AnalysisType.WEBSITE and is_website_url(input.url)

    async def analyze(self, input: AssessmentInput) -> AnalysisResult:
        started = time.monotonic()
        payload = await self._call_source(self.source, input.url)
        if not isinstance(payload, BusinessTypeAnalysis):
            raise TypeError(f"Business-type source returned {type(payload).__name__}")
        return self._result(payload, started)

    def validate(self, result: AnalysisResult) -> ValidationResult:
        data = result.data
        if not isinstance(data, BusinessTypeAnalysis):
            return ValidationResult.from_checks(["Result does not contain business-type data"], [])

        errors = []
        warnings = []

        if not isinstance(data.business_type, str) or not data.business_type.strip():
            errors.append("business_type must be a non-empty string")
        if not 0 <= data.confidence <= 100:
            errors.append("confidence must be between 0 and 100")
        if not 0 <= data.overall_score <= 100:
            errors.append("overall_score must be between 0 and 100")
        if not data.agentic_flows:
            errors.append("agentic_flows is required")
        if not errors and data.confidence < LOW_CONFIDENCE:
            warnings.append(f"Low business type confidence: {data.confidence}")

        return ValidationResult.from_checks(errors, warnings)
