"""
Built-in plugins and their registration table
"""
from dataclasses import dataclass
from typing import Optional

from core.logging import get_logger

from ..registry import PluginRegistry
from ..types import AnalysisType
from .ai_assessor import UnifiedAIAssessor
from .business_type import BusinessTypeAnalyzer, BusinessTypeSource
from .file_size import FileListingSource, FileSizeAnalyzer, RepositoryFile
from .openai_client import OpenAIClient
from .repository import RepositoryAnalyzer, RepositorySource
from .website import WebsiteAnalyzer, WebsiteSource

logger = get_logger(__name__, domain="d1")


@dataclass
class AnalysisSources:
    """Collaborators that fetch and classify content; any may be absent"""

    repository: Optional[RepositorySource] = None
    website: Optional[WebsiteSource] = None
    business_type: Optional[BusinessTypeSource] = None
    file_listing: Optional[FileListingSource] = None


def register_default_plugins(
    registry: PluginRegistry,
    sources: AnalysisSources,
    ai_client: Optional[OpenAIClient] = None,
    include_detailed_analysis: bool = True,
) -> PluginRegistry:
    """Register a plugin for every collaborator that was supplied"""
    if sources.repository is not None:
        registry.register_analyzer(RepositoryAnalyzer(sources.repository))
    if sources.website is not None:
        registry.register_analyzer(WebsiteAnalyzer(sources.website))
    if sources.business_type is not None:
        registry.register_analyzer(BusinessTypeAnalyzer(sources.business_type))
    if sources.file_listing is not None:
        registry.register_analyzer(FileSizeAnalyzer(sources.file_listing))

    if ai_client is not None:
        for analysis_type in (AnalysisType.REPOSITORY, AnalysisType.WEBSITE):
            registry.register_ai_assessor(
                UnifiedAIAssessor(ai_client, type=analysis_type, include_detailed_analysis=include_detailed_analysis)
            )
    else:
        logger.warning("No AI client configured; AI assessors not registered")

    return registry


__all__ = [
    "AnalysisSources",
    "BusinessTypeAnalyzer",
    "FileSizeAnalyzer",
    "OpenAIClient",
    "RepositoryAnalyzer",
    "RepositoryFile",
    "UnifiedAIAssessor",
    "WebsiteAnalyzer",
    "register_default_plugins",
]
