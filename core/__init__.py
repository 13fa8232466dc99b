"""Core utilities and configuration for AgentReady"""
from core.config import settings
from core.exceptions import ErrorKind, ReadinessError, ValidationError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "ErrorKind",
    "ReadinessError",
    "ValidationError",
]
