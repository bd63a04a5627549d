"""
Audit API Routes

No business logic lives here.
Routes validate input, call engines, return responses.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, status
from pydantic import BaseModel, Field, field_validator

from seoscope.core.config import get_settings
from seoscope.engines.auditor.engine import SiteAuditor
from seoscope.engines.base import AuditResult, CompetitorComparison
from seoscope.engines.competitor.engine import CompetitiveComparator
from seoscope.engines.scoring.engine import (
    calculate_blended_score,
    calculate_grade,
    score_label,
    score_trend,
)
from seoscope.integrations.local import LocalFindings
from seoscope.integrations.recommendations import Recommendation, RecommendationGenerator
from seoscope.integrations.speed import SpeedFindings

logger = structlog.get_logger(__name__)
router = APIRouter()


# ─────────────────────────────────────────────
# Request / Response Schemas
# ─────────────────────────────────────────────

class CreateAuditRequest(BaseModel):
    url: str = Field(..., min_length=1)
    speed_score: int | None = Field(None, ge=0, le=100)
    local_seo_score: int | None = Field(None, ge=0, le=100)
    speed: SpeedFindings | None = None
    local_seo: LocalFindings | None = None
    previous_score: int | None = Field(None, ge=0, le=100)

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be blank")
        return v


class AuditReport(BaseModel):
    result: AuditResult
    grade: str
    label: str
    blended_score: int
    score_trend: int | None = None


class CompareRequest(BaseModel):
    your_url: str = Field(..., min_length=1)
    competitor_urls: list[str] = Field(default_factory=list)


class RecommendationsResponse(BaseModel):
    url: str
    recommendations: list[Recommendation]


# ─────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────

@router.post(
    "",
    response_model=AuditReport,
    status_code=status.HTTP_200_OK,
    summary="Audit a single URL",
    description="Fetches the page, scores it and returns findings, scores and ranked issues. 502 if the page cannot be fetched.",
)
async def create_audit(request: CreateAuditRequest) -> AuditReport:
    result = await SiteAuditor().run(
        request.url,
        speed_score=request.speed_score,
        local_seo_score=request.local_seo_score,
        speed=request.speed,
        local_seo=request.local_seo,
    )
    overall = result.scores.overall_score

    return AuditReport(
        result=result,
        grade=calculate_grade(overall),
        label=score_label(overall),
        blended_score=calculate_blended_score(result.scores, get_settings().blend_weights),
        score_trend=score_trend(overall, request.previous_score),
    )


@router.post(
    "/compare",
    response_model=CompetitorComparison,
    summary="Compare a site against competitors",
    description="Always succeeds structurally; competitors that could not be audited appear as zero-score entries.",
)
async def compare(request: CompareRequest) -> CompetitorComparison:
    comparison = await CompetitiveComparator().run(request.your_url, request.competitor_urls)
    logger.info(
        "Comparison served",
        your_url=request.your_url,
        competitors=len(comparison.competitors),
        failed=len(comparison.failed_urls),
    )
    return comparison


@router.post(
    "/recommendations",
    response_model=RecommendationsResponse,
    response_model_by_alias=True,
    summary="Generate prioritized recommendations for an audit result",
)
async def recommendations(result: AuditResult) -> RecommendationsResponse:
    recs = await RecommendationGenerator().generate(result)
    return RecommendationsResponse(url=result.url, recommendations=recs)
