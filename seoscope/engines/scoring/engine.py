"""
Scoring Engine - turns findings into 0-100 dimension scores.

Scoring Model:
- Technical and content scores start at 100 and lose fixed penalties
- Both clamp to [0, 100]
- overall = round(0.6 × technical + 0.4 × content), clamped
- Speed / local scores from collaborators are carried, never folded into overall
- blended_score is a separate, explicitly-named 4-dimension weighted mean
"""

from __future__ import annotations

import structlog

from seoscope.core.rules import DEFAULT_SCORING, ScoringConfig
from seoscope.engines.base import (
    AuditEngine,
    ContentFindings,
    ScoreBreakdown,
    TechnicalFindings,
)

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Dimension scores
# ─────────────────────────────────────────────

def technical_penalty(technical: TechnicalFindings, config: ScoringConfig = DEFAULT_SCORING) -> int:
    """Total points lost on the technical dimension (unclamped)."""
    penalty = 0
    meta = technical.meta_tags

    if not meta.title.value:
        penalty += config.title_missing_penalty
    elif not config.title_min_length <= meta.title.length <= config.title_max_length:
        penalty += config.title_length_penalty

    if not meta.description.value:
        penalty += config.description_missing_penalty
    elif not config.description_min_length <= meta.description.length <= config.description_max_length:
        penalty += config.description_length_penalty

    if technical.headings.h1_count == 0:
        penalty += config.h1_missing_penalty
    elif technical.headings.h1_count > 1:
        penalty += config.h1_multiple_penalty

    if technical.images.without_alt > 0:
        penalty += min(config.image_alt_penalty_cap, technical.images.without_alt * config.image_alt_penalty)

    if not technical.structured_data.detected:
        penalty += config.structured_data_missing_penalty

    og_present = technical.open_graph.present_count
    if og_present < config.open_graph_min_fields:
        penalty += (config.open_graph_min_fields - og_present) * config.open_graph_field_penalty

    if not technical.security.https:
        penalty += config.https_missing_penalty

    return penalty


def content_penalty(content: ContentFindings, config: ScoringConfig = DEFAULT_SCORING) -> int:
    """Total points lost on the content dimension (unclamped)."""
    penalty = 0

    if content.word_count < config.thin_content_words:
        penalty += config.thin_content_penalty
    elif content.word_count < config.short_content_words:
        penalty += config.short_content_penalty

    if content.readability_score < config.readability_poor_below:
        penalty += config.readability_poor_penalty
    elif content.readability_score < config.readability_fair_below:
        penalty += config.readability_fair_penalty

    return penalty


def calculate_overall_score(technical_score: int, content_score: int, config: ScoringConfig = DEFAULT_SCORING) -> int:
    return AuditEngine.clamp_score(technical_score * config.technical_weight + content_score * config.content_weight)


def calculate_scores(
    technical: TechnicalFindings,
    content: ContentFindings,
    config: ScoringConfig = DEFAULT_SCORING,
    speed_score: int | None = None,
    local_seo_score: int | None = None,
) -> ScoreBreakdown:
    """
    Pure function: findings -> ScoreBreakdown.

    speed_score / local_seo_score are attached as given; they do not move overall_score.
    """
    technical_score = AuditEngine.clamp_score(100 - technical_penalty(technical, config))
    content_score = AuditEngine.clamp_score(100 - content_penalty(content, config))

    return ScoreBreakdown(
        overall_score=calculate_overall_score(technical_score, content_score, config),
        technical_score=technical_score,
        content_score=content_score,
        speed_score=None if speed_score is None else AuditEngine.clamp_score(speed_score),
        local_seo_score=None if local_seo_score is None else AuditEngine.clamp_score(local_seo_score),
    )


# ─────────────────────────────────────────────
# Derived views
# ─────────────────────────────────────────────

def calculate_blended_score(scores: ScoreBreakdown, weights: dict[str, float]) -> int:
    """
    Weighted mean over every dimension that has a score.

    Missing speed/local dimensions drop out and the remaining weights are
    renormalized, so a page audited without collaborators blends technical
    and content only.
    """
    dimensions = {
        "technical": scores.technical_score,
        "content": scores.content_score,
        "speed": scores.speed_score,
        "local": scores.local_seo_score,
    }

    weighted_sum = 0.0
    total_weight = 0.0
    for name, score in dimensions.items():
        weight = weights.get(name, 0.0)
        if score is None or weight <= 0:
            continue
        weighted_sum += score * weight
        total_weight += weight

    if total_weight == 0:
        return 0
    return AuditEngine.clamp_score(weighted_sum / total_weight)


def calculate_grade(score: float) -> str:
    """Convert numeric score to letter grade."""
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 65:
        return "C"
    elif score >= 50:
        return "D"
    return "F"


def score_label(score: float) -> str:
    if score >= 80:
        return "Excellent"
    elif score >= 60:
        return "Good"
    return "Needs Work"


def score_trend(current: int, previous: int | None) -> int | None:
    """Signed change against a previously stored overall score, if there is one."""
    if previous is None:
        return None
    return current - previous
