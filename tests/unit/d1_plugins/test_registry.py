"""
Tests for the plugin registry: registration, cache, retry and single flight
"""
import asyncio

import pytest

from core.exceptions import (
    AnalysisFailedError,
    AssessmentFailedError,
    CannotHandleError,
    DeadlineExceededError,
    DuplicateRegistrationError,
    ErrorKind,
    InvalidAnalysisError,
    NetworkError,
    NoPluginError,
    RegistrationError,
)
from core.retry import Deadline
from d1_plugins.registry import PluginRegistry
from d1_plugins.types import AnalysisType
from tests.helpers import (
    StubAnalyzer,
    StubAssessor,
    analysis_result,
    file_size_analysis,
    repository_analysis,
    website_input,
)

pytestmark = [pytest.mark.unit]


class TestRegistration:
    def test_register_and_lookup(self, registry):
        analyzer = StubAnalyzer()
        registry.register_analyzer(analyzer)

        assert registry.get_analyzer(AnalysisType.REPOSITORY) is analyzer
        assert registry.get_analyzer(AnalysisType.REPOSITORY, "stub-analyzer") is analyzer
        assert registry.get_analyzer(AnalysisType.REPOSITORY, "other") is None
        assert registry.get_analyzer(AnalysisType.WEBSITE) is None

    def test_duplicate_registration_keeps_existing(self, registry):
        first = StubAnalyzer()
        registry.register_analyzer(first)

        with pytest.raises(DuplicateRegistrationError):
            registry.register_analyzer(StubAnalyzer())

        assert registry.get_analyzer(AnalysisType.REPOSITORY) is first
        assert registry.get_stats()["analyzers"] == ["repository:stub-analyzer"]

    def test_same_name_different_type_is_allowed(self, registry):
        registry.register_analyzer(StubAnalyzer(type=AnalysisType.REPOSITORY))
        registry.register_analyzer(StubAnalyzer(type=AnalysisType.WEBSITE))

        assert registry.get_stats()["analyzers"] == ["repository:stub-analyzer", "website:stub-analyzer"]

    def test_duplicate_ai_assessor(self, registry):
        registry.register_ai_assessor(StubAssessor())
        with pytest.raises(DuplicateRegistrationError):
            registry.register_ai_assessor(StubAssessor())

    def test_rejects_zero_retries(self):
        with pytest.raises(RegistrationError):
            PluginRegistry(max_retries=0)


class TestExecuteAnalysis:
    async def test_returns_analyzer_result(self, registry, repo_input):
        registry.register_analyzer(StubAnalyzer())

        result = await registry.execute_analysis(repo_input)

        assert result.type == AnalysisType.REPOSITORY
        assert result.data == repository_analysis()

    async def test_cached_result_is_reused(self, registry, repo_input):
        analyzer = StubAnalyzer()
        registry.register_analyzer(analyzer)

        first = await registry.execute_analysis(repo_input)
        second = await registry.execute_analysis(repo_input)

        assert analyzer.calls == 1
        assert second is first
        assert registry.get_stats()["cache_size"] == 1
        assert registry.get_stats()["cache_hit_rate"] == 0.5

    async def test_caching_disabled(self, repo_input):
        registry = PluginRegistry(enable_caching=False, retry_delay_seconds=0)
        analyzer = StubAnalyzer()
        registry.register_analyzer(analyzer)

        await registry.execute_analysis(repo_input)
        await registry.execute_analysis(repo_input)

        assert analyzer.calls == 2

    async def test_retries_transient_failures(self, registry, repo_input):
        analyzer = StubAnalyzer(errors=[ValueError("flaky"), ValueError("flaky again")])
        registry.register_analyzer(analyzer)

        result = await registry.execute_analysis(repo_input)

        assert analyzer.calls == 3
        assert result.data.has_readme

    async def test_exhaustion_raises_analysis_failed(self, registry, repo_input):
        last = NetworkError("github", "HTTP 404", upstream_status=404)
        analyzer = StubAnalyzer(failure=last)
        registry.register_analyzer(analyzer)

        with pytest.raises(AnalysisFailedError) as exc_info:
            await registry.execute_analysis(repo_input)

        assert analyzer.calls == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is last
        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    async def test_failures_are_not_cached(self, registry, repo_input):
        analyzer = StubAnalyzer(errors=[ValueError()] * 3)
        registry.register_analyzer(analyzer)

        with pytest.raises(AnalysisFailedError):
            await registry.execute_analysis(repo_input)
        result = await registry.execute_analysis(repo_input)

        assert analyzer.calls == 4
        assert result.data.has_readme

    async def test_invalid_result_counts_as_failed_attempt(self, registry, repo_input):
        analyzer = StubAnalyzer(valid=False)
        registry.register_analyzer(analyzer)

        with pytest.raises(AnalysisFailedError) as exc_info:
            await registry.execute_analysis(repo_input)

        assert analyzer.calls == 3
        assert isinstance(exc_info.value.last_error, InvalidAnalysisError)

    async def test_concurrent_requests_share_one_computation(self, registry, repo_input):
        analyzer = StubAnalyzer(delay=0.05)
        registry.register_analyzer(analyzer)

        results = await asyncio.gather(*(registry.execute_analysis(repo_input) for _ in range(5)))

        assert analyzer.calls == 1
        assert all(result is results[0] for result in results)

    async def test_no_analyzer_registered(self, registry, repo_input):
        with pytest.raises(NoPluginError) as exc_info:
            await registry.execute_analysis(repo_input)

        assert exc_info.value.kind == ErrorKind.INTERNAL

    async def test_analyzer_declines_input(self, registry, repo_input):
        analyzer = StubAnalyzer(handles=False)
        registry.register_analyzer(analyzer)

        with pytest.raises(CannotHandleError):
            await registry.execute_analysis(repo_input)
        assert analyzer.calls == 0

    async def test_analysis_type_override(self, registry, repo_input):
        registry.register_analyzer(StubAnalyzer())
        registry.register_analyzer(
            StubAnalyzer(file_size_analysis(overall=75), type=AnalysisType.FILE_SIZE, name="file-size")
        )

        result = await registry.execute_analysis(repo_input, analysis_type=AnalysisType.FILE_SIZE)

        assert result.type == AnalysisType.FILE_SIZE
        assert result.data.agent_compatibility.overall == 75

    async def test_deadline_is_not_retried(self, registry, repo_input):
        analyzer = StubAnalyzer(delay=1)
        registry.register_analyzer(analyzer)

        with pytest.raises(DeadlineExceededError):
            await registry.execute_analysis(repo_input, deadline=Deadline(0.05))

        assert analyzer.calls == 1

    async def test_clear_cache(self, registry, repo_input):
        analyzer = StubAnalyzer()
        registry.register_analyzer(analyzer)

        await registry.execute_analysis(repo_input)
        registry.clear_cache()
        await registry.execute_analysis(repo_input)

        assert analyzer.calls == 2

    async def test_entries_expire_after_ttl(self, repo_input):
        registry = PluginRegistry(cache_ttl_seconds=0.05, retry_delay_seconds=0)
        analyzer = StubAnalyzer()
        registry.register_analyzer(analyzer)

        await registry.execute_analysis(repo_input)
        await registry.execute_analysis(repo_input)
        assert analyzer.calls == 1

        await asyncio.sleep(0.1)
        await registry.execute_analysis(repo_input)

        assert analyzer.calls == 2

    async def test_waiter_without_deadline_outlasts_impatient_caller(self, registry, repo_input):
        analyzer = StubAnalyzer(delay=0.2)
        registry.register_analyzer(analyzer)

        impatient, patient = await asyncio.gather(
            registry.execute_analysis(repo_input, deadline=Deadline(0.05)),
            registry.execute_analysis(repo_input),
            return_exceptions=True,
        )

        assert isinstance(impatient, DeadlineExceededError)
        assert patient.data.has_readme
        assert analyzer.calls == 1

    async def test_cancelled_caller_leaves_result_for_waiters(self, registry, repo_input):
        analyzer = StubAnalyzer(delay=0.05)
        registry.register_analyzer(analyzer)

        first = asyncio.ensure_future(registry.execute_analysis(repo_input))
        await asyncio.sleep(0)
        second = asyncio.ensure_future(registry.execute_analysis(repo_input))
        await asyncio.sleep(0)
        first.cancel()

        result = await second
        assert result.data.has_readme
        assert analyzer.calls == 1
        assert first.cancelled()


class TestExecuteAIAssessment:
    async def test_cache_ignores_analysis_metadata(self, registry):
        assessor = StubAssessor()
        registry.register_ai_assessor(assessor)

        first = await registry.execute_ai_assessment(analysis_result(repository_analysis(), analyzer="a"))
        second = await registry.execute_ai_assessment(analysis_result(repository_analysis(), analyzer="b"))

        assert assessor.calls == 1
        assert second is first

    async def test_different_payloads_are_assessed_separately(self, registry):
        assessor = StubAssessor()
        registry.register_ai_assessor(assessor)

        await registry.execute_ai_assessment(analysis_result(repository_analysis()))
        await registry.execute_ai_assessment(analysis_result(repository_analysis(has_agents=False)))

        assert assessor.calls == 2

    async def test_exhaustion_raises_assessment_failed(self, registry):
        assessor = StubAssessor(failure=NetworkError("openai", "rate limited", upstream_status=429))
        registry.register_ai_assessor(assessor)

        with pytest.raises(AssessmentFailedError) as exc_info:
            await registry.execute_ai_assessment(analysis_result(repository_analysis()))

        assert assessor.calls == 3
        assert exc_info.value.kind == ErrorKind.RATE_LIMITED

    async def test_no_assessor_for_type(self, registry):
        registry.register_ai_assessor(StubAssessor(type=AnalysisType.WEBSITE))

        with pytest.raises(NoPluginError):
            await registry.execute_ai_assessment(analysis_result(repository_analysis()))


class TestStats:
    def test_stats_shape(self, registry):
        registry.register_analyzer(StubAnalyzer())
        registry.register_ai_assessor(StubAssessor(type=AnalysisType.WEBSITE))

        stats = registry.get_stats()

        assert stats["analyzers"] == ["repository:stub-analyzer"]
        assert stats["ai_assessors"] == ["website:stub-assessor"]
        assert stats["cache_size"] == 0
        assert stats["cache_hit_rate"] == 0.0
        assert stats["config"] == {
            "enable_caching": True,
            "cache_ttl_seconds": 300,
            "max_retries": 3,
            "retry_delay_seconds": 0,
        }

    async def test_website_input_resolves_website_analyzer(self, registry):
        registry.register_analyzer(StubAnalyzer())
        with pytest.raises(NoPluginError):
            await registry.execute_analysis(website_input())
