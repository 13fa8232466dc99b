"""
Repository analyzer plugin

Wraps the repository fetch collaborator (archive download, extraction and
text heuristics) and validates what it reports.
"""
import re
import time
from typing import Awaitable, Callable

from core.logging import get_logger

from ..base import AnalyzerPlugin
from ..types import AnalysisResult, AnalysisType, AssessmentInput, RepositoryAnalysis, ValidationResult

logger = get_logger(__name__, domain="d1", plugin="repository-analyzer")

GITHUB_REPO_PATTERN = re.compile(r"^https://github\.com/[^/\s]+/[^/\s]+")

RepositorySource = Callable[[str], Awaitable[RepositoryAnalysis]]


class RepositoryAnalyzer(AnalyzerPlugin):
    type = AnalysisType.REPOSITORY
    name = "repository-analyzer"
    version = "1.0.0"

    def __init__(self, source: RepositorySource):
        self.source = source

    def can_handle(self, input: AssessmentInput) -> bool:
        return input.type == AnalysisType.REPOSITORY and bool(GITHUB_REPO_PATTERN.match(input.url))

    async def analyze(self, input: AssessmentInput) -> AnalysisResult:
        started = time.monotonic()
        payload = await self._call_source(self.source, input.url)
        if not isinstance(payload, RepositoryAnalysis):
            raise TypeError(f"Repository source returned {type(payload).__name__}")
        logger.info(f"Analyzed repository {input.url}: {payload.file_count} files")
        return self._result(payload, started)

    def validate(self, result: AnalysisResult) -> ValidationResult:
        data = result.data
        if not isinstance(data, RepositoryAnalysis):
            return ValidationResult.from_checks(["Result does not contain repository data"], [])

        errors = []
        warnings = []

        for flag in ("has_readme", "has_contributing", "has_agents", "has_license", "has_workflows", "has_tests"):
            if not isinstance(getattr(data, flag), bool):
                errors.append(f"{flag} must be a boolean")

        for count in ("file_count", "lines_of_code", "repository_size_mb"):
            value = getattr(data, count)
            if not isinstance(value, (int, float)) or value < 0:
                errors.append(f"{count} must be a non-negative number")

        if not isinstance(data.languages, (list, tuple)):
            errors.append("languages must be a list")

        if data.file_size_analysis is None:
            warnings.append("File size analysis is missing")

        return ValidationResult.from_checks(errors, warnings)
