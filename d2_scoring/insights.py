"""
Findings and recommendations

Deterministic rules over the static analysis plus the free-text findings an
AI assessment returns, lifted into structured Finding/Recommendation records.
"""
from typing import Callable, Iterable, List, Optional, TypeVar

from d1_plugins.types import AIAssessment, AnalysisData, BusinessTypeAnalysis, FileSizeAnalysis

from .types import Finding, Recommendation, Severity

MAX_UNIFIED_ITEMS = 10

AI_GROUP_LABELS = {
    "instruction_clarity": "Instruction Clarity",
    "workflow_automation": "Workflow Automation",
    "context_efficiency": "Context Efficiency",
    "risk_compliance": "Risk Compliance",
    "integration_structure": "Integration Structure",
    "file_size_optimization": "File Size Optimization",
}

# Category reported for each AI group
AI_GROUP_CATEGORIES = {
    "instruction_clarity": "instruction_clarity",
    "workflow_automation": "workflow_automation",
    "context_efficiency": "documentation",
    "risk_compliance": "risk_compliance",
    "integration_structure": "integration_structure",
    "file_size_optimization": "file_size_optimization",
}


T = TypeVar("T")


def dedupe_top(
    items: Iterable[T],
    limit: int = MAX_UNIFIED_ITEMS,
    key: Optional[Callable[[T], str]] = None,
) -> List[T]:
    """First occurrence of each distinct string key, at most limit of them"""
    seen = set()
    unique: List[T] = []
    for item in items:
        marker = key(item) if key else item
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(item)
        if len(unique) >= limit:
            break
    return unique


def static_findings(data: AnalysisData) -> List[Finding]:
    findings: List[Finding] = []

    repo = data.repository
    if repo is not None:
        if not repo.has_readme:
            findings.append(
                Finding(
                    id="missing-readme",
                    category="documentation",
                    severity=Severity.HIGH,
                    title="Missing README.md",
                    description="Repository lacks a README.md file",
                    evidence=("No README.md found",),
                    impact="High impact on AI agent understanding",
                )
            )
        if not repo.has_agents:
            findings.append(
                Finding(
                    id="missing-agents",
                    category="documentation",
                    severity=Severity.MEDIUM,
                    title="Missing AGENTS.md",
                    description="Repository lacks AI agent specific documentation",
                    evidence=("No AGENTS.md found",),
                    impact="Medium impact on AI agent readiness",
                )
            )
        if not repo.has_workflows:
            findings.append(
                Finding(
                    id="missing-workflows",
                    category="workflow_automation",
                    severity=Severity.MEDIUM,
                    title="No CI/CD Workflows",
                    description="Repository lacks automated workflows",
                    evidence=("No .github/workflows found",),
                    impact="Medium impact on automation potential",
                )
            )

    site = data.website
    if site is not None:
        if not site.has_structured_data:
            findings.append(
                Finding(
                    id="missing-structured-data",
                    category="machine_readable_content",
                    severity=Severity.MEDIUM,
                    title="No Structured Data",
                    description="Website has no schema.org or JSON-LD markup",
                    evidence=("No structured data found",),
                    impact="Agents cannot extract entities reliably",
                )
            )
        if not site.contact_info:
            findings.append(
                Finding(
                    id="missing-contact-info",
                    category="information_architecture",
                    severity=Severity.MEDIUM,
                    title="No Contact Information",
                    description="Website exposes no email, phone or address",
                    evidence=("No contact information found",),
                    impact="Agents cannot hand off to a human",
                )
            )

    return findings


def static_recommendations(data: AnalysisData) -> List[Recommendation]:
    recommendations: List[Recommendation] = []

    repo = data.repository
    if repo is not None:
        if not repo.has_readme:
            recommendations.append(
                Recommendation(
                    id="add-readme",
                    category="documentation",
                    priority=Severity.HIGH,
                    title="Add README.md",
                    description="Create a comprehensive README.md file",
                    implementation=(
                        "Create README.md in repository root",
                        "Include project description and purpose",
                        "Add installation and usage instructions",
                        "Include examples and screenshots",
                    ),
                    impact="Significantly improves AI agent understanding",
                    effort=Severity.LOW,
                    timeline="1-2 days",
                )
            )
        if not repo.has_agents:
            recommendations.append(
                Recommendation(
                    id="add-agents",
                    category="documentation",
                    priority=Severity.MEDIUM,
                    title="Add AGENTS.md",
                    description="Create AI agent specific documentation",
                    implementation=(
                        "Create AGENTS.md in repository root",
                        "Include step-by-step instructions for AI agents",
                        "Document common tasks and workflows",
                        "Add troubleshooting and error handling",
                    ),
                    impact="Improves AI agent readiness",
                    effort=Severity.MEDIUM,
                    timeline="3-5 days",
                )
            )
        if not repo.has_workflows:
            recommendations.append(
                Recommendation(
                    id="add-workflows",
                    category="workflow_automation",
                    priority=Severity.MEDIUM,
                    title="Add CI Workflows",
                    description="Automate build and test runs on every change",
                    implementation=(
                        "Add a workflow under .github/workflows",
                        "Run the test suite on pull requests",
                    ),
                    impact="Lets agents verify their own changes",
                    effort=Severity.MEDIUM,
                    timeline="1-3 days",
                )
            )

    site = data.website
    if site is not None and not site.has_structured_data:
        recommendations.append(
            Recommendation(
                id="add-structured-data",
                category="machine_readable_content",
                priority=Severity.MEDIUM,
                title="Add Structured Data",
                description="Describe the business with schema.org JSON-LD",
                implementation=(
                    "Add an Organization or LocalBusiness JSON-LD block",
                    "Mark up services, opening hours and contact points",
                ),
                impact="Makes key facts machine readable",
                effort=Severity.LOW,
                timeline="1-2 days",
            )
        )

    return recommendations


def ai_findings(assessment: Optional[AIAssessment]) -> List[Finding]:
    if assessment is None or assessment.detailed_analysis is None:
        return []

    findings: List[Finding] = []
    for group, part in assessment.detailed_analysis.groups():
        label = AI_GROUP_LABELS[group]
        for index, text in enumerate(part.findings):
            findings.append(
                Finding(
                    id=f"ai-{group.replace('_', '-')}-{index}",
                    category=AI_GROUP_CATEGORIES[group],
                    severity=Severity.MEDIUM,
                    title=f"{label} Issue",
                    description=text,
                    evidence=("AI analysis",),
                    impact="Medium impact on AI agent understanding",
                    confidence=part.confidence / 100,
                )
            )
    return findings


def ai_recommendations(assessment: Optional[AIAssessment]) -> List[Recommendation]:
    if assessment is None or assessment.detailed_analysis is None:
        return []

    recommendations: List[Recommendation] = []
    for group, part in assessment.detailed_analysis.groups():
        label = AI_GROUP_LABELS[group]
        for index, text in enumerate(part.recommendations):
            recommendations.append(
                Recommendation(
                    id=f"ai-{group.replace('_', '-')}-rec-{index}",
                    category=AI_GROUP_CATEGORIES[group],
                    priority=Severity.MEDIUM,
                    title=f"Improve {label}",
                    description=text,
                    implementation=("Review and update documentation",),
                    impact=f"Improves {label.lower()}",
                    effort=Severity.MEDIUM,
                    timeline="1-2 weeks",
                )
            )
    return recommendations


def ai_summary_findings(assessment: Optional[AIAssessment]) -> List[Finding]:
    """AI text findings, or the verdict reason when there is no detail"""
    if assessment is None:
        return []
    detailed = ai_findings(assessment)
    if detailed or not assessment.reason:
        return detailed
    return [
        Finding(
            id="ai-verdict",
            category="ai_assessment",
            severity=Severity.LOW if assessment.overall_success else Severity.MEDIUM,
            title="AI assessment verdict",
            description=assessment.reason,
            evidence=("AI analysis",),
            impact="Summary of AI agent readiness",
            confidence=0.5,
        )
    ]


def business_type_findings(analysis: Optional[BusinessTypeAnalysis]) -> List[Finding]:
    if analysis is None:
        return []
    return [
        Finding(
            id=f"business-{index}",
            category="business_analysis",
            severity=Severity.MEDIUM,
            title=text,
            description=text,
            evidence=(text,),
            impact="Medium impact on business analysis",
            confidence=analysis.confidence / 100,
        )
        for index, text in enumerate(analysis.findings)
    ]


def business_type_recommendations(analysis: Optional[BusinessTypeAnalysis]) -> List[Recommendation]:
    if analysis is None:
        return []
    return [
        Recommendation(
            id=f"business-rec-{index}",
            category="business_analysis",
            priority=Severity.MEDIUM,
            title=text,
            description=text,
            implementation=(text,),
            impact="Medium impact on business analysis",
            effort=Severity.MEDIUM,
            timeline="1-2 weeks",
        )
        for index, text in enumerate(analysis.recommendations)
    ]


def file_size_findings(analysis: Optional[FileSizeAnalysis]) -> List[Finding]:
    if analysis is None:
        return []
    return [
        Finding(
            id=f"file-size-{index}",
            category="file_size_optimization",
            severity=Severity.LOW,
            title=text,
            description=text,
            evidence=(text,),
            impact="Low impact on file analysis",
            confidence=1.0,
        )
        for index, text in enumerate(analysis.recommendations)
    ]


def file_size_recommendations(analysis: Optional[FileSizeAnalysis]) -> List[Recommendation]:
    if analysis is None:
        return []
    return [
        Recommendation(
            id=f"file-size-rec-{index}",
            category="file_size_optimization",
            priority=Severity.LOW,
            title=text,
            description=text,
            implementation=(text,),
            impact="Low impact on file analysis",
            effort=Severity.LOW,
            timeline="1 week",
        )
        for index, text in enumerate(analysis.recommendations)
    ]


def unify_findings(*sources: Iterable[Finding], limit: int = MAX_UNIFIED_ITEMS) -> List[Finding]:
    """Concatenate sources in order, drop repeated descriptions, keep the first limit"""
    return dedupe_top((item for source in sources for item in source), limit, key=lambda f: f.description)


def unify_recommendations(
    *sources: Iterable[Recommendation], limit: int = MAX_UNIFIED_ITEMS
) -> List[Recommendation]:
    return dedupe_top((item for source in sources for item in source), limit, key=lambda r: r.description)
