"""
Analyze API Schemas

Pydantic models for the analyze endpoint request, its error body and the
registry stats response.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from d1_plugins.plugins.repository import GITHUB_REPO_PATTERN
from d1_plugins.plugins.website import is_website_url
from d1_plugins.types import AnalysisType, utcnow


class AnalyzeRequest(BaseModel):
    """Request model for analyzing a repository or website"""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "inputUrl": "https://github.com/octocat/hello-world",
                "inputType": "repository",
            }
        },
    )

    input_url: str = Field(..., alias="inputUrl", min_length=1, description="Repository or website URL")
    input_type: AnalysisType = Field(
        default=AnalysisType.REPOSITORY, alias="inputType", description="repository or website"
    )

    @model_validator(mode="after")
    def validate_url_for_type(self):
        self.input_url = self.input_url.strip()
        if self.input_type == AnalysisType.REPOSITORY:
            if not GITHUB_REPO_PATTERN.match(self.input_url):
                raise ValueError("Please provide a valid GitHub repository URL")
        elif self.input_type == AnalysisType.WEBSITE:
            if not is_website_url(self.input_url):
                raise ValueError("Please provide a valid website URL (http or https)")
        else:
            raise ValueError("inputType must be 'repository' or 'website'")
        return self


class ErrorResponse(BaseModel):
    """Standard error response model"""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    kind: Optional[str] = Field(default=None, description="Error kind")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
    request_id: Optional[str] = Field(default=None, description="Request identifier for tracking")
    timestamp: datetime = Field(default_factory=utcnow, description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "ANALYSIS_FAILED",
                "message": "repository-analyzer failed after 3 attempts: upstream returned 404",
                "kind": "not_found",
                "details": {"attempts": 3},
                "request_id": "req_123456789",
                "timestamp": "2025-01-01T12:00:00Z",
            }
        }
    )


class RegistryConfigResponse(BaseModel):
    enable_caching: bool
    cache_ttl_seconds: float
    max_retries: int
    retry_delay_seconds: float


class RegistryStatsResponse(BaseModel):
    """Plugin registry introspection"""

    analyzers: List[str] = Field(..., description="Registered analyzer keys")
    ai_assessors: List[str] = Field(..., description="Registered AI assessor keys")
    cache_size: int = Field(..., description="Live cache entries")
    cache_hit_rate: float = Field(..., description="Hits over lookups since start")
    config: RegistryConfigResponse
