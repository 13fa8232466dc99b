"""
Tests for the zero-score fallback result
"""
import pytest

from core.exceptions import AnalysisFailedError
from d2_scoring.fallback import FALLBACK_ERROR_CODE, build_fallback_result, error_message
from d2_scoring.types import CORE_CATEGORIES, WEBSITE_CATEGORIES
from tests.helpers import repository_input, website_input

pytestmark = [pytest.mark.unit]


class TestBuildFallbackResult:
    def test_repository_fallback(self):
        result = build_fallback_result(repository_input(), RuntimeError("boom"), analysis_time=1.5, version="2.0.0")

        assert result.scores.overall.value == 0
        assert [name for name, _ in result.scores.categories.items()] == list(CORE_CATEGORIES)
        assert all(score.value == 0 and score.max_value == 100 for _, score in result.scores.categories.items())
        assert result.scores.confidence.overall == 0
        assert result.ai_assessment is None
        assert result.metadata.fallback_used is True
        assert result.metadata.analysis_time == 1.5
        assert result.metadata.version == "2.0.0"

    def test_single_error_record(self):
        result = build_fallback_result(repository_input(), RuntimeError("boom"))

        assert len(result.metadata.errors) == 1
        error = result.metadata.errors[0]
        assert error.code == FALLBACK_ERROR_CODE
        assert error.message == "boom"
        assert error.recoverable is True

    def test_finding_and_recommendation(self):
        result = build_fallback_result(repository_input(), RuntimeError("boom"))

        assert [f.id for f in result.findings] == ["assessment-failed"]
        assert result.findings[0].description == "Assessment failed: boom"
        assert [r.id for r in result.recommendations] == ["retry-assessment"]
        assert result.recommendations[0].timeline == "Immediate"

    def test_website_fallback_reports_website_categories(self):
        result = build_fallback_result(website_input(), RuntimeError("boom"))

        names = [name for name, _ in result.scores.categories.items()]
        assert names == list(CORE_CATEGORIES) + list(WEBSITE_CATEGORIES)

    def test_error_code_does_not_depend_on_error(self):
        result = build_fallback_result(repository_input(), AnalysisFailedError(3, RuntimeError("down")))

        assert result.metadata.errors[0].code == "ASSESSMENT_FAILED"

    def test_error_without_message_uses_type_name(self):
        assert error_message(TimeoutError()) == "TimeoutError"

    def test_results_have_distinct_ids(self):
        first = build_fallback_result(repository_input(), RuntimeError("boom"))
        second = build_fallback_result(repository_input(), RuntimeError("boom"))

        assert first.id != second.id
        assert first.id.startswith("assessment_")
