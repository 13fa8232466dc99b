"""
D3 Assessment - agent readiness assessment pipeline

Orchestrator that sequences the analysis steps, the scoring engine that owns
fallback behaviour, and the HTTP boundary in front of them.
"""

from .engine import EngineConfig, ScoringEngine
from .orchestrator import AssessmentOrchestrator, OrchestratorConfig

__all__ = [
    "AssessmentOrchestrator",
    "EngineConfig",
    "OrchestratorConfig",
    "ScoringEngine",
]
