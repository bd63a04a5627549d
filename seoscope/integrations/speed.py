"""
Page performance collaborator contract.

Speed findings are measured by a third-party page-speed service (PageSpeed
Insights / Lighthouse). The audit core never calls that service; it only
stores and surfaces the record a caller hands it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# (good upper bound, poor lower bound) per Core Web Vital
VITAL_THRESHOLDS: dict[str, tuple[float, float]] = {
    "lcp": (2500.0, 4000.0),   # ms
    "inp": (200.0, 500.0),     # ms
    "cls": (0.1, 0.25),        # unitless
}

OPPORTUNITY_AUDITS = (
    "render-blocking-resources",
    "unused-css-rules",
    "unused-javascript",
    "modern-image-formats",
    "offscreen-images",
)


class VitalRating(str, Enum):
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


def rate_vital(metric: str, value: float) -> VitalRating:
    """Rate a Core Web Vital value against its good/poor thresholds."""
    try:
        good, poor = VITAL_THRESHOLDS[metric.lower()]
    except KeyError:
        raise ValueError(f"Unknown Core Web Vital '{metric}'") from None
    if value <= good:
        return VitalRating.GOOD
    if value <= poor:
        return VitalRating.NEEDS_IMPROVEMENT
    return VitalRating.POOR


class CoreWebVital(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    value: float = 0.0
    rating: VitalRating = VitalRating.GOOD
    display_value: str = ""


class CoreWebVitals(BaseModel):
    model_config = ConfigDict(frozen=True)

    lcp: CoreWebVital = Field(default_factory=CoreWebVital)
    inp: CoreWebVital = Field(default_factory=CoreWebVital)
    cls: CoreWebVital = Field(default_factory=CoreWebVital)


class SpeedOpportunity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    savings: str = ""


class SpeedFindings(BaseModel):
    """Lighthouse category scores (0-100), Core Web Vitals and fix opportunities."""

    model_config = ConfigDict(frozen=True)

    performance: int = Field(0, ge=0, le=100)
    accessibility: int = Field(0, ge=0, le=100)
    best_practices: int = Field(0, ge=0, le=100)
    seo: int = Field(0, ge=0, le=100)
    core_web_vitals: CoreWebVitals = Field(default_factory=CoreWebVitals)
    opportunities: list[SpeedOpportunity] = Field(default_factory=list)

    @classmethod
    def from_pagespeed_payload(cls, payload: dict[str, Any]) -> "SpeedFindings":
        """Map a PageSpeed Insights v5 ``runPagespeed`` response onto the contract."""
        lighthouse = payload.get("lighthouseResult") or {}
        categories = lighthouse.get("categories") or {}
        audits = lighthouse.get("audits") or {}

        def category_score(key: str) -> int:
            score = (categories.get(key) or {}).get("score") or 0
            return max(0, min(100, round(score * 100)))

        def numeric(audit_id: str) -> float | None:
            value = (audits.get(audit_id) or {}).get("numericValue")
            return float(value) if value is not None else None

        lcp = numeric("largest-contentful-paint") or 0.0
        cls_value = numeric("cumulative-layout-shift") or 0.0
        # Lab runs have no INP; total blocking time is the usual stand-in
        inp = numeric("interaction-to-next-paint")
        if inp is None:
            inp = numeric("total-blocking-time") or 0.0

        opportunities = []
        for audit_id in OPPORTUNITY_AUDITS:
            audit = audits.get(audit_id)
            if audit and audit.get("score") is not None and audit["score"] < 1:
                opportunities.append(SpeedOpportunity(
                    id=audit_id,
                    title=audit.get("title") or audit_id,
                    description=audit.get("description") or "",
                    savings=audit.get("displayValue") or "Optimization available",
                ))

        return cls(
            performance=category_score("performance"),
            accessibility=category_score("accessibility"),
            best_practices=category_score("best-practices"),
            seo=category_score("seo"),
            core_web_vitals=CoreWebVitals(
                lcp=CoreWebVital(value=lcp, rating=rate_vital("lcp", lcp), display_value=f"{lcp / 1000:.1f} s"),
                inp=CoreWebVital(value=inp, rating=rate_vital("inp", inp), display_value=f"{round(inp)} ms"),
                cls=CoreWebVital(value=cls_value, rating=rate_vital("cls", cls_value), display_value=f"{cls_value:.2f}"),
            ),
            opportunities=opportunities,
        )
