"""
Website analyzer plugin
"""
import time
from typing import Awaitable, Callable
from urllib.parse import urlparse

from core.logging import get_logger

from ..base import AnalyzerPlugin
from ..types import AnalysisResult, AnalysisType, AssessmentInput, ValidationResult, WebsiteAnalysis

logger = get_logger(__name__, domain="d1", plugin="website-analyzer")

WebsiteSource = Callable[[str], Awaitable[WebsiteAnalysis]]


def is_website_url(url: str) -> bool:
    """http(s) URL that is not a GitHub repository"""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    host = (parsed.hostname or "").lower()
    return host != "github.com" and not host.endswith(".github.com")


class WebsiteAnalyzer(AnalyzerPlugin):
    type = AnalysisType.WEBSITE
    name = "website-analyzer"
    version = "1.0.0"

    def __init__(self, source: WebsiteSource):
        self.source = source

    def can_handle(self, input: AssessmentInput) -> bool:
        return input.type == AnalysisType.WEBSITE and is_website_url(input.url)

    async def analyze(self, input: AssessmentInput) -> AnalysisResult:
        started = time.monotonic()
        payload = await self._call_source(self.source, input.url)
        if not isinstance(payload, WebsiteAnalysis):
            raise TypeError(f"Website source returned {type(payload).__name__}")
        logger.info(f"Analyzed website {input.url}: {payload.content_length} chars")
        return self._result(payload, started)

    def validate(self, result: AnalysisResult) -> ValidationResult:
        data = result.data
        if not isinstance(data, WebsiteAnalysis):
            return ValidationResult.from_checks(["Result does not contain website data"], [])

        errors = []
        warnings = []

        if not data.url:
            errors.append("url is required")
        if not isinstance(data.content_length, int) or data.content_length < 0:
            errors.append("content_length must be a non-negative integer")
        if not data.page_title:
            warnings.append("Page title is missing")
        if not data.meta_description:
            warnings.append("Meta description is missing")

        return ValidationResult.from_checks(errors, warnings)
