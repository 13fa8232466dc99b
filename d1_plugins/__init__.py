"""
D1 Plugins - analyzer and AI assessor extensions

Plugin contracts, the registry that runs them through caching and retry, and
the built-in plugins.
"""
from .base import AIAssessorPlugin, AnalyzerPlugin
from .registry import PluginRegistry
from .types import AnalysisResult, AnalysisType, AssessmentInput

__all__ = [
    "AIAssessorPlugin",
    "AnalysisResult",
    "AnalysisType",
    "AnalyzerPlugin",
    "AssessmentInput",
    "PluginRegistry",
]
