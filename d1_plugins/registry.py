"""
Plugin Registry

Holds analyzers and AI assessors keyed by (type, name) and mediates every
invocation through the result cache and the shared retry loop.

The registry is an ordinary object. Build one at startup, register plugins on
it, and pass it to the orchestrator and scoring engine that need it.
"""
from typing import Any, Dict, Optional

from core.exceptions import (
    AnalysisFailedError,
    AssessmentFailedError,
    CannotHandleError,
    DuplicateRegistrationError,
    InvalidAnalysisError,
    NoPluginError,
    RegistrationError,
)
from core.logging import get_logger
from core.metrics import metrics
from core.retry import Deadline, RetryExhausted, linear_backoff, retry_async

from .base import AIAssessorPlugin, AnalyzerPlugin
from .cache import ResultCache
from .types import AIAssessment, AnalysisResult, AnalysisType, AssessmentInput, stable_key

logger = get_logger(__name__, domain="d1")


class PluginRegistry:
    """Registry of analyzer and AI assessor plugins"""

    def __init__(
        self,
        enable_caching: bool = True,
        cache_ttl_seconds: float = 300.0,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
    ):
        """
        Initialize plugin registry

        Args:
            enable_caching: Cache successful results by input
            cache_ttl_seconds: Age after which a cached result is recomputed
            max_retries: Total attempts per execution
            retry_delay_seconds: Linear backoff unit between attempts
        """
        if max_retries < 1:
            raise RegistrationError("max_retries must be at least 1", max_retries=max_retries)

        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.cache = ResultCache(ttl_seconds=cache_ttl_seconds, enabled=enable_caching)

        self._analyzers: Dict[str, AnalyzerPlugin] = {}
        self._ai_assessors: Dict[str, AIAssessorPlugin] = {}

    # Registration

    def register_analyzer(self, plugin: AnalyzerPlugin) -> None:
        key = plugin.key
        if key in self._analyzers:
            raise DuplicateRegistrationError("analyzer", plugin.type.value, plugin.name)
        self._analyzers[key] = plugin
        logger.info(f"Registered analyzer {key} v{plugin.version}")

    def register_ai_assessor(self, plugin: AIAssessorPlugin) -> None:
        key = plugin.key
        if key in self._ai_assessors:
            raise DuplicateRegistrationError("AI assessor", plugin.type.value, plugin.name)
        self._ai_assessors[key] = plugin
        logger.info(f"Registered AI assessor {key} v{plugin.version}")

    # Lookup

    def get_analyzer(self, type: AnalysisType, name: Optional[str] = None) -> Optional[AnalyzerPlugin]:
        """Exact lookup by name, or first analyzer registered for type"""
        return self._lookup(self._analyzers, AnalysisType(type), name)

    def get_ai_assessor(self, type: AnalysisType, name: Optional[str] = None) -> Optional[AIAssessorPlugin]:
        return self._lookup(self._ai_assessors, AnalysisType(type), name)

    @staticmethod
    def _lookup(plugins: Dict[str, Any], type: AnalysisType, name: Optional[str]):
        if name is not None:
            return plugins.get(f"{type.value}:{name}")
        for plugin in plugins.values():
            if plugin.type == type:
                return plugin
        return None

    # Execution

    async def execute_analysis(
        self,
        input: AssessmentInput,
        analysis_type: Optional[AnalysisType] = None,
        name: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> AnalysisResult:
        """
        Run the analyzer for input through cache and retry

        Args:
            input: Assessment input
            analysis_type: Analyzer type to resolve, defaults to input.type
            name: Specific analyzer name
            deadline: Bounds how long this caller waits for the result

        Raises:
            NoPluginError: No analyzer registered for the type
            CannotHandleError: The analyzer declined the input
            AnalysisFailedError: Every attempt failed
        """
        analysis_type = AnalysisType(analysis_type or input.type)
        analyzer = self.get_analyzer(analysis_type, name)
        if analyzer is None:
            raise NoPluginError("analyzer", analysis_type.value, name)
        if not analyzer.can_handle(input):
            raise CannotHandleError(analyzer.name, input.url)

        async def attempt() -> AnalysisResult:
            result = await analyzer.analyze(input)
            validation = analyzer.validate(result)
            if not validation.is_valid:
                raise InvalidAnalysisError(analyzer.name, list(validation.errors))
            if validation.warnings:
                logger.debug(f"{analyzer.name} validation warnings: {list(validation.warnings)}")
            return result

        async def compute() -> AnalysisResult:
            try:
                result = await self._with_retry(attempt, "analyzer", analyzer.name)
            except RetryExhausted as e:
                metrics.track_plugin_execution("analyzer", analyzer.name, "failed")
                logger.error(
                    f"Analysis failed after {e.attempts} attempts: {e.last_error}",
                    extra={"plugin": analyzer.name, "url": input.url, "attempt": e.attempts},
                )
                raise AnalysisFailedError(e.attempts, e.last_error, analyzer.name) from e.last_error
            metrics.track_plugin_execution("analyzer", analyzer.name, "success")
            return result

        key = stable_key("analysis", {"analyzer": analyzer.key, "input": input})
        return await self.cache.get_or_compute(key, compute, deadline)

    async def execute_ai_assessment(
        self,
        analysis: AnalysisResult,
        name: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> AIAssessment:
        """
        Run the AI assessor for an analysis through cache and retry

        Raises:
            NoPluginError: No assessor registered for the analysis type
            CannotHandleError: The assessor declined the analysis
            AssessmentFailedError: Every attempt failed
        """
        assessor = self.get_ai_assessor(analysis.type, name)
        if assessor is None:
            raise NoPluginError("AI assessor", analysis.type.value, name)
        if not assessor.can_handle(analysis):
            raise CannotHandleError(assessor.name, analysis.type.value)

        async def attempt() -> AIAssessment:
            return await assessor.assess(analysis)

        async def compute() -> AIAssessment:
            try:
                result = await self._with_retry(attempt, "ai_assessor", assessor.name)
            except RetryExhausted as e:
                metrics.track_plugin_execution("ai_assessor", assessor.name, "failed")
                logger.error(
                    f"AI assessment failed after {e.attempts} attempts: {e.last_error}",
                    extra={"plugin": assessor.name, "attempt": e.attempts},
                )
                raise AssessmentFailedError(e.attempts, e.last_error, assessor.name) from e.last_error
            metrics.track_plugin_execution("ai_assessor", assessor.name, "success")
            return result

        # metadata (timing) is left out so a re-run of the same analysis hits
        key = stable_key(
            "ai-assessment",
            {"assessor": assessor.key, "type": analysis.type, "data": analysis.data},
        )
        return await self.cache.get_or_compute(key, compute, deadline)

    async def _with_retry(self, attempt, plugin_kind: str, plugin_name: str):
        def on_retry(number: int, error: BaseException) -> None:
            metrics.track_plugin_retry(plugin_kind, plugin_name)

        return await retry_async(
            attempt,
            max_attempts=self.max_retries,
            backoff=linear_backoff(self.retry_delay_seconds),
            on_retry=on_retry,
        )

    # Introspection

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_stats(self) -> Dict[str, Any]:
        cache_stats = self.cache.stats()
        return {
            "analyzers": sorted(self._analyzers),
            "ai_assessors": sorted(self._ai_assessors),
            "cache_size": self.cache.size,
            "cache_hit_rate": cache_stats.hit_rate,
            "config": {
                "enable_caching": self.cache.enabled,
                "cache_ttl_seconds": self.cache.ttl_seconds,
                "max_retries": self.max_retries,
                "retry_delay_seconds": self.retry_delay_seconds,
            },
        }
