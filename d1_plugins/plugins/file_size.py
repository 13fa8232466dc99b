"""
File-size analyzer plugin

Secondary analysis for repositories: scores how well a repository's files fit
the context limits of common coding agents. The file listing comes from a
collaborator; the compatibility scoring happens here.
"""
import os
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..base import AnalyzerPlugin
from ..types import (
    AgentCompatibility,
    AnalysisResult,
    AnalysisType,
    AssessmentInput,
    CompatibilityStatus,
    CriticalFile,
    FileSizeAnalysis,
    LargeFile,
    ValidationResult,
    round_half_up,
)
from .repository import GITHUB_REPO_PATTERN

KB = 1024
MB = 1024 * 1024

# Per-file limits of each agent
AGENT_LIMITS = {
    "cursor": 2 * MB,
    "github_copilot": 1 * MB,
    "claude_web": 30 * MB,
    "claude_api": 500 * MB,
}

# Agents that report a "limited" state above half their limit
AGENTS_WITH_SOFT_LIMIT = {"cursor", "claude_web", "claude_api"}

# Critical files are scored against these sizes for every agent but the API
AGENTS_AFFECTED_BY_CRITICAL_FILES = {"cursor", "github_copilot", "claude_web"}

OPTIMAL_SIZES = {
    "agents": 200 * KB,
    "readme": 500 * KB,
    "contributing": 300 * KB,
    "license": 50 * KB,
}

LARGE_FILE_THRESHOLD = 2 * MB

BINARY_EXTENSIONS = {".zip", ".tar", ".gz", ".jar", ".exe", ".dll", ".so", ".bin", ".pdf", ".woff", ".woff2"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".svg", ".webp", ".ico"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}
TEXT_EXTENSIONS = {".md", ".txt", ".json", ".csv", ".yaml", ".yml", ".xml", ".py", ".js", ".ts", ".go", ".rs"}


@dataclass(frozen=True)
class RepositoryFile:
    path: str
    size_bytes: int


FileListingSource = Callable[[str], Awaitable[Sequence[RepositoryFile]]]


def classify_file_type(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    if ext in BINARY_EXTENSIONS:
        return "binary"
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    if ext in TEXT_EXTENSIONS:
        return "text"
    return "other"


def critical_file_kind(path: str) -> Optional[str]:
    """Return the critical file kind for a root-level documentation file"""
    if "/" in path.strip("/"):
        return None
    stem = os.path.splitext(os.path.basename(path))[0].lower()
    if stem in OPTIMAL_SIZES:
        return stem
    return None


def agent_impact(size_bytes: int) -> Dict[str, str]:
    """Per-agent status of one file: blocked, limited or supported"""
    impact = {}
    for agent, limit in AGENT_LIMITS.items():
        if size_bytes > limit:
            impact[agent] = "blocked"
        elif agent in AGENTS_WITH_SOFT_LIMIT and size_bytes > limit * 0.5:
            impact[agent] = "limited"
        else:
            impact[agent] = "supported"
    return impact


def critical_file_status(size_bytes: int, kind: str) -> str:
    optimal = OPTIMAL_SIZES[kind]
    if size_bytes <= optimal:
        return "optimal"
    if size_bytes <= optimal * 2:
        return "acceptable"
    return "problematic"


def compute_file_size_analysis(files: Sequence[RepositoryFile]) -> FileSizeAnalysis:
    """Score a repository file listing for agent compatibility"""
    total_bytes = sum(f.size_bytes for f in files)

    large: List[tuple] = []
    for f in files:
        if f.size_bytes > LARGE_FILE_THRESHOLD:
            large.append((f, agent_impact(f.size_bytes)))

    critical: List[CriticalFile] = []
    for f in files:
        kind = critical_file_kind(f.path)
        if kind is None:
            continue
        critical.append(
            CriticalFile(
                path=f.path,
                size_kb=round(f.size_bytes / KB, 2),
                optimal_size_kb=OPTIMAL_SIZES[kind] / KB,
                status=critical_file_status(f.size_bytes, kind),
            )
        )

    problematic = [c for c in critical if c.status == "problematic"]
    base_score = 100 - (len(problematic) / len(critical) * 100) if critical else 100

    agents: Dict[str, CompatibilityStatus] = {}
    for agent in AGENT_LIMITS:
        blocked = [f.path for f, impact in large if impact[agent] == "blocked"]
        limited = [f.path for f, impact in large if impact[agent] == "limited"]

        score = base_score - 20 * len(blocked) - 10 * len(limited)
        issues = [f"{path} exceeds the {agent} file limit" for path in blocked]
        issues += [f"{path} is close to the {agent} file limit" for path in limited]
        if agent in AGENTS_AFFECTED_BY_CRITICAL_FILES:
            score -= 15 * len(problematic)
            issues += [f"{c.path} is far above its optimal size" for c in problematic]

        score = round_half_up(max(0.0, min(100.0, score)))
        if blocked:
            status = "blocked"
        elif limited or problematic:
            status = "warning"
        else:
            status = "compliant"
        agents[agent] = CompatibilityStatus(agent=agent, score=score, status=status, issues=tuple(issues))

    overall = round_half_up(sum(s.score for s in agents.values()) / len(agents))

    large_files = tuple(
        LargeFile(
            path=f.path,
            size_mb=round(f.size_bytes / MB, 2),
            file_type=classify_file_type(f.path),
            agent_impact=(
                "blocking" if "blocked" in impact.values() else "warning" if "limited" in impact.values() else "info"
            ),
        )
        for f, impact in large
    )

    return FileSizeAnalysis(
        total_size_mb=round(total_bytes / MB, 2),
        large_files=large_files,
        critical_files=tuple(critical),
        agent_compatibility=AgentCompatibility(agents=agents, overall=overall),
        recommendations=tuple(_recommendations(large_files, critical)),
    )


def _recommendations(large_files: Sequence[LargeFile], critical: Sequence[CriticalFile]) -> List[str]:
    recommendations = []

    if large_files:
        recommendations.append(
            f"Found {len(large_files)} files exceeding 2MB. "
            "Consider using repository-level processing tools or splitting large files."
        )

    suboptimal = [c for c in critical if c.status != "optimal"]
    if suboptimal:
        recommendations.append(
            f"{len(suboptimal)} critical files exceed optimal sizes. Optimize for better AI agent compatibility."
        )

    by_kind = {critical_file_kind(c.path): c for c in critical}
    agents_file = by_kind.get("agents")
    readme = by_kind.get("readme")
    if agents_file is not None and agents_file.status != "optimal":
        recommendations.append(
            "AGENTS.md file is too large. Consider splitting into multiple focused instruction files."
        )
    if readme is not None and readme.status != "optimal":
        recommendations.append(
            "README file is too large. Consider creating a concise overview with links to detailed documentation."
        )
    if agents_file is None:
        recommendations.append("Consider adding an AGENTS.md file with specific instructions for AI agents.")

    return recommendations


class FileSizeAnalyzer(AnalyzerPlugin):
    type = AnalysisType.FILE_SIZE
    name = "file-size-analyzer"
    version = "1.0.0"

    def __init__(self, source: FileListingSource):
        self.source = source

    def can_handle(self, input: AssessmentInput) -> bool:
        return input.type == AnalysisType.REPOSITORY and bool(GITHUB_REPO_PATTERN.match(input.url))

    async def analyze(self, input: AssessmentInput) -> AnalysisResult:
        started = time.monotonic()
        files = await self._call_source(self.source, input.url)
        return self._result(compute_file_size_analysis(list(files)), started)

    def validate(self, result: AnalysisResult) -> ValidationResult:
        data = result.data
        if not isinstance(data, FileSizeAnalysis):
            return ValidationResult.from_checks(["Result does not contain file-size data"], [])

        errors = []
        if data.total_size_mb < 0:
            errors.append("total_size_mb must be non-negative")
        if not 0 <= data.agent_compatibility.overall <= 100:
            errors.append("agent compatibility overall must be between 0 and 100")
        return ValidationResult.from_checks(errors, [])
