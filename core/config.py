"""
Configuration management using Pydantic Settings
Handles environment variables and validation
"""
from functools import lru_cache
from typing import Dict, Optional

from pydantic import ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    environment: str = Field(default="development")

    # Application
    app_name: str = "AgentReady"
    app_version: str = "0.1.0"
    base_url: str = Field(default="http://localhost:8000")

    # Plugin registry
    plugin_cache_enabled: bool = Field(default=True)
    plugin_cache_ttl_seconds: float = Field(default=300.0, ge=0)
    plugin_max_retries: int = Field(default=3, ge=1)
    plugin_retry_delay_seconds: float = Field(default=1.0, ge=0)

    # Scoring engine
    enable_ai_assessment: bool = Field(default=True)
    assessment_max_retries: int = Field(default=2, ge=1)
    fallback_to_static: bool = Field(default=True)
    assessment_timeout_seconds: float = Field(default=30.0, gt=0)
    request_timeout_seconds: float = Field(default=45.0, gt=0)
    include_detailed_analysis: bool = Field(default=True)

    # Orchestrator secondary analyses
    enable_business_type_analysis: bool = Field(default=True)
    enable_file_size_analysis: bool = Field(default=True)

    # OpenAI
    enable_openai: bool = Field(default=True, description="Enable OpenAI API calls")
    openai_api_key: Optional[SecretStr] = Field(default=None)
    openai_base_url: str = Field(default="https://api.openai.com")
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_seconds: float = Field(default=30.0, gt=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    # Monitoring
    prometheus_enabled: bool = Field(default=True)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Validate production-specific settings after all fields are set"""
        if (
            self.environment == "production"
            and self.enable_ai_assessment
            and self.enable_openai
            and not self.openai_api_key
        ):
            raise ValueError("OpenAI API key required when AI assessment is enabled in production")
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def registry_options(self) -> Dict[str, object]:
        """Keyword arguments for PluginRegistry"""
        return {
            "enable_caching": self.plugin_cache_enabled,
            "cache_ttl_seconds": self.plugin_cache_ttl_seconds,
            "max_retries": self.plugin_max_retries,
            "retry_delay_seconds": self.plugin_retry_delay_seconds,
        }

    def get_api_key(self, service: str) -> str:
        """Get API key for a service"""
        keys = {
            "openai": self.openai_api_key.get_secret_value() if self.openai_api_key else None,
        }

        key = keys.get(service)
        if not key:
            raise ValueError(f"API key not configured for {service}")
        return key

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    def model_dump(self, **kwargs):
        """Override to mask sensitive fields when serializing"""
        data = super().model_dump(**kwargs)

        for field in ["openai_api_key"]:
            if field in data and data[field]:
                if hasattr(data[field], "get_secret_value"):
                    value = data[field].get_secret_value()
                else:
                    value = str(data[field])

                # Keep first 4 chars for identification
                if len(value) > 4:
                    data[field] = value[:4] + "*" * (len(value) - 4)
                else:
                    data[field] = "*" * len(value)

        return data


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
