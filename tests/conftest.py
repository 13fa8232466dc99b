"""
Shared fixtures for the test suite
"""
import os
import sys

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from d1_plugins.registry import PluginRegistry
from d3_assessment.engine import EngineConfig, ScoringEngine
from d3_assessment.orchestrator import AssessmentOrchestrator
from tests.helpers import repository_input, website_input


@pytest.fixture
def registry():
    """Registry with caching on and no backoff between attempts"""
    return PluginRegistry(enable_caching=True, cache_ttl_seconds=300, max_retries=3, retry_delay_seconds=0)


@pytest.fixture
def orchestrator(registry):
    return AssessmentOrchestrator(registry)


@pytest.fixture
def engine_config():
    return EngineConfig(retry_delay_seconds=0, timeout_seconds=5)


@pytest.fixture
def engine(registry, orchestrator, engine_config):
    return ScoringEngine(registry, orchestrator, engine_config)


@pytest.fixture
def repo_input():
    return repository_input()


@pytest.fixture
def site_input():
    return website_input()
