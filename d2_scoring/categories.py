"""
Category Scoring

Turns static-analysis booleans and counts into per-category scores, turns
AI sub-metrics into AI category scores, and combines the two with a fixed
70/30 static/AI split.
"""
import math
from typing import Dict, Mapping, Optional

from core.exceptions import ConfigurationError
from d1_plugins.types import (
    SUB_METRIC_MAX,
    SUB_METRICS,
    AIAssessment,
    AnalysisData,
    RepositoryAnalysis,
    SubAnalysis,
    WebsiteAnalysis,
)

from .types import CORE_CATEGORIES, DEFAULT_SCORE_CONFIDENCE, WEBSITE_CATEGORIES, CategoryScores, Confidence, Score

DEFAULT_CATEGORY_WEIGHTS: Dict[str, float] = {
    "documentation": 0.2,
    "instruction_clarity": 0.2,
    "workflow_automation": 0.2,
    "risk_compliance": 0.2,
    "integration_structure": 0.1,
    "file_size_optimization": 0.1,
}

STATIC_WEIGHT = 0.7
AI_WEIGHT = 0.3

# AI sub-analysis group feeding each category
AI_GROUP_FOR_CATEGORY = {
    "documentation": "context_efficiency",
    "instruction_clarity": "instruction_clarity",
    "workflow_automation": "workflow_automation",
    "risk_compliance": "risk_compliance",
    "integration_structure": "integration_structure",
    "file_size_optimization": "file_size_optimization",
}


def validate_weights(weights: Mapping[str, float]) -> Dict[str, float]:
    """Weights must cover exactly the core categories and sum to 1"""
    if set(weights) != set(CORE_CATEGORIES):
        missing = sorted(set(CORE_CATEGORIES) - set(weights))
        unknown = sorted(set(weights) - set(CORE_CATEGORIES))
        raise ConfigurationError(
            f"Category weights must cover {list(CORE_CATEGORIES)} (missing={missing}, unknown={unknown})",
            setting="category_weights",
        )
    if any(w < 0 for w in weights.values()):
        raise ConfigurationError("Category weights must be non-negative", setting="category_weights")
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        raise ConfigurationError(f"Category weights must sum to 1.0, got {total}", setting="category_weights")
    return dict(weights)


def _points(*rules: tuple) -> float:
    return float(sum(points for condition, points in rules if condition))


def repository_base_scores(repo: RepositoryAnalysis, confidence: Confidence) -> Dict[str, Score]:
    readme = repo.readme_content or ""
    agents = repo.agents_content or ""
    contributing = repo.contributing_content or ""

    file_size = 100.0
    if repo.repository_size_mb > 50:
        file_size -= 20
    if repo.repository_size_mb > 100:
        file_size -= 30
    if repo.repository_size_mb > 500:
        file_size -= 50

    values = {
        "documentation": _points(
            (repo.has_readme, 25),
            (repo.has_contributing, 25),
            (repo.has_agents, 30),
            (repo.has_license, 20),
        ),
        "instruction_clarity": _points(
            (len(readme) > 500, 40),
            (len(agents) > 200, 40),
            (len(contributing) > 300, 20),
        ),
        "workflow_automation": _points(
            (repo.has_workflows, 50),
            (repo.has_tests, 30),
            (len(repo.workflow_files) > 0, 20),
        ),
        "risk_compliance": _points(
            (repo.has_license, 30),
            (repo.error_handling, 40),
            (len(repo.languages) > 0, 30),
        ),
        "integration_structure": _points(
            (repo.file_count > 10, 20),
            (len(repo.languages) > 0, 30),
            (repo.error_handling, 30),
            (repo.has_tests, 20),
        ),
        "file_size_optimization": max(0.0, file_size),
    }
    return {name: Score(value, 100.0, confidence) for name, value in values.items()}


def website_category_scores(site: WebsiteAnalysis, confidence: Confidence) -> Dict[str, Score]:
    features = site.agent_readiness_features
    values = {
        "information_architecture": _points(
            (len(site.contact_info) > 0, 25),
            (len(site.locations) > 0, 25),
            (bool(site.page_title), 25),
            (bool(site.meta_description), 25),
        ),
        "machine_readable_content": _points(
            (site.has_structured_data, 30),
            (site.has_open_graph, 20),
            (site.has_twitter_cards, 20),
            (site.has_sitemap, 15),
            (site.has_robots_txt, 15),
        ),
        "conversational_query_readiness": _points(
            (site.content_length > 1000, 30),
            (len(site.technologies) > 0, 20),
            (features.faq_support.score > 0, 30),
            (features.information_gathering.score > 0, 20),
        ),
        "action_oriented_functionality": _points(
            (features.direct_booking.score > 0, 40),
            (features.task_management.score > 0, 30),
            (len(site.contact_info) > 0, 30),
        ),
        "personalization_context_awareness": _points(
            (features.personalization.score > 0, 50),
            (len(site.social_media_links) > 0, 25),
            (len(site.locations) > 0, 25),
        ),
    }
    return {name: Score(value, 100.0, confidence) for name, value in values.items()}


def base_category_scores(data: AnalysisData, confidence: Confidence = DEFAULT_SCORE_CONFIDENCE) -> Dict[str, Score]:
    """Static-analysis scores for whichever categories the data supports"""
    scores: Dict[str, Score] = {}
    if data.repository is not None:
        scores.update(repository_base_scores(data.repository, confidence))
    if data.website is not None:
        scores.update(website_category_scores(data.website, confidence))
    return scores


def sub_analysis_score(group: str, part: SubAnalysis) -> float:
    """Mean of a group's 0-20 sub-metrics, normalised to 0-100"""
    names = SUB_METRICS[group]
    if not names:
        return 0.0
    normalised = [part.metrics.get(name, 0.0) / SUB_METRIC_MAX * 100 for name in names]
    return sum(normalised) / len(normalised)


def ai_category_scores(assessment: Optional[AIAssessment]) -> Dict[str, Score]:
    """AI scores for every category backed by a detailed sub-analysis"""
    if assessment is None or assessment.detailed_analysis is None:
        return {}

    detailed = assessment.detailed_analysis
    scores: Dict[str, Score] = {}
    for category, group in AI_GROUP_FOR_CATEGORY.items():
        part = getattr(detailed, group)
        if part is None:
            continue
        scores[category] = Score(sub_analysis_score(group, part), 100.0, part.confidence / 100)
    return scores


def combine_scores(base: Optional[Score], ai: Optional[Score]) -> Score:
    """70/30 static/AI blend, or whichever exists, or zero"""
    if base is None and ai is None:
        return Score.zero()
    if base is None:
        return ai
    if ai is None:
        return base
    return Score(
        value=base.value * STATIC_WEIGHT + ai.value * AI_WEIGHT,
        max_value=100.0,
        confidence=base.confidence * STATIC_WEIGHT + ai.confidence * AI_WEIGHT,
    )


def category_scores(
    data: AnalysisData,
    assessment: Optional[AIAssessment] = None,
    static_confidence: Confidence = DEFAULT_SCORE_CONFIDENCE,
) -> CategoryScores:
    base = base_category_scores(data, static_confidence)
    ai = ai_category_scores(assessment)

    core = {name: combine_scores(base.get(name), ai.get(name)) for name in CORE_CATEGORIES}
    website = {name: base[name] for name in WEBSITE_CATEGORIES if name in base}
    return CategoryScores(**core, **website)


def overall_score(
    categories: CategoryScores,
    weights: Mapping[str, float] = DEFAULT_CATEGORY_WEIGHTS,
    confidence: Confidence = DEFAULT_SCORE_CONFIDENCE,
) -> Score:
    """Weight-normalised average of the weighted categories"""
    weighted_sum = 0.0
    total_weight = 0.0
    for name, score in categories.items():
        weight = weights.get(name, 0.0)
        if weight:
            weighted_sum += score.value * weight
            total_weight += weight
    value = weighted_sum / total_weight if total_weight > 0 else 0.0
    return Score(value, 100.0, confidence)
