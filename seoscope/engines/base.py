"""
Base class and type contracts for the page audit engines.

Design principles:
- Engines are stateless: everything they need arrives as arguments
- Findings records default every field, so a missing signal is a value, never an error
- Results are immutable value objects exchanged with dashboards, storage and
  recommendation generators
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from urllib.parse import urlparse, urlunparse

import structlog
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from seoscope.integrations.local import LocalFindings
from seoscope.integrations.speed import SpeedFindings

logger = structlog.get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round halves up (builtin round() rounds halves to even)."""
    return int(math.floor(value + 0.5))


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class Severity(str, Enum):
    CRITICAL = "critical"   # Hurts rankings - fix immediately
    WARNING = "warning"     # Best-practice deviation - fix soon
    INFO = "info"           # Nice to have


SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


# ─────────────────────────────────────────────
# Audit inputs
# ─────────────────────────────────────────────

class AuditTarget(BaseModel):
    """A URL normalized to carry a scheme and a lower-cased host."""

    model_config = ConfigDict(frozen=True)

    url: str

    @field_validator("url", mode="before")
    @classmethod
    def normalize(cls, v: str) -> str:
        raw = str(v or "").strip()
        if not raw:
            raise ValueError("URL is required")
        if not raw.lower().startswith(("http://", "https://")):
            raw = "https://" + raw
        parsed = urlparse(raw)
        if not parsed.netloc:
            raise ValueError(f"URL '{v}' has no host")
        path = parsed.path or "/"
        return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, parsed.query, ""))

    @property
    def hostname(self) -> str:
        return urlparse(self.url).hostname or ""

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def is_https(self) -> bool:
        return urlparse(self.url).scheme == "https"


class PageSnapshot(BaseModel):
    """Raw markup of a target plus what the fetch observed. Discarded after extraction."""

    model_config = ConfigDict(frozen=True)

    url: str
    final_url: str
    status_code: int = 200
    html: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    load_time_ms: float = 0.0

    @property
    def scheme(self) -> str:
        return urlparse(self.url).scheme


# ─────────────────────────────────────────────
# Technical findings
# ─────────────────────────────────────────────

class MetaTextFinding(BaseModel):
    """A text meta signal (title or description) with its length-derived issues."""
    value: str | None = None
    length: int = 0
    score: int = 0
    issues: list[str] = Field(default_factory=list)


class CanonicalFinding(BaseModel):
    exists: bool = False
    value: str | None = None


class RobotsFinding(BaseModel):
    value: str | None = None
    is_indexable: bool = True


class ViewportFinding(BaseModel):
    exists: bool = False
    value: str | None = None


class MetaTags(BaseModel):
    title: MetaTextFinding = Field(default_factory=MetaTextFinding)
    description: MetaTextFinding = Field(default_factory=MetaTextFinding)
    canonical: CanonicalFinding = Field(default_factory=CanonicalFinding)
    robots: RobotsFinding = Field(default_factory=RobotsFinding)
    viewport: ViewportFinding = Field(default_factory=ViewportFinding)


class OpenGraph(BaseModel):
    title: bool = False
    description: bool = False
    image: bool = False
    url: bool = False
    type: bool = False
    site_name: bool = False

    @property
    def present_count(self) -> int:
        return sum(1 for present in self.model_dump().values() if present)


class TwitterCard(BaseModel):
    card: bool = False
    title: bool = False
    description: bool = False
    image: bool = False


class Headings(BaseModel):
    h1_count: int = 0
    h1_content: list[str] = Field(default_factory=list)
    h2_count: int = 0
    h3_count: int = 0
    h4_count: int = 0
    h5_count: int = 0
    h6_count: int = 0
    hierarchy_valid: bool = False
    issues: list[str] = Field(default_factory=list)


class Images(BaseModel):
    total: int = 0
    with_alt: int = 0
    without_alt: int = 0
    issues: list[str] = Field(default_factory=list)


class Links(BaseModel):
    internal: int = 0
    external: int = 0
    nofollow: int = 0


class StructuredData(BaseModel):
    detected: bool = False
    types: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class Security(BaseModel):
    https: bool = False
    mixed_content: bool = False


class RobotsTxt(BaseModel):
    exists: bool = False
    allows_crawling: bool = True


class Sitemap(BaseModel):
    exists: bool = False
    url: str | None = None


class TechnicalFindings(BaseModel):
    """Structural and protocol-level signals extracted from one page."""
    meta_tags: MetaTags = Field(default_factory=MetaTags)
    open_graph: OpenGraph = Field(default_factory=OpenGraph)
    twitter_card: TwitterCard = Field(default_factory=TwitterCard)
    headings: Headings = Field(default_factory=Headings)
    images: Images = Field(default_factory=Images)
    links: Links = Field(default_factory=Links)
    structured_data: StructuredData = Field(default_factory=StructuredData)
    security: Security = Field(default_factory=Security)
    robots_txt: RobotsTxt = Field(default_factory=RobotsTxt)
    sitemap: Sitemap = Field(default_factory=Sitemap)


# ─────────────────────────────────────────────
# Content findings
# ─────────────────────────────────────────────

class KeywordStat(BaseModel):
    word: str
    count: int
    density: float   # percent of all counted words


class ContentFindings(BaseModel):
    word_count: int = 0
    top_keywords: list[KeywordStat] = Field(default_factory=list)
    readability_score: int = Field(0, ge=0, le=100)
    readability_level: str = "Difficult"


# ─────────────────────────────────────────────
# Scores, issues, results
# ─────────────────────────────────────────────

class ScoreBreakdown(BaseModel):
    """
    Per-dimension scores. overall_score is always the 0.6/0.4 technical/content
    blend; speed and local scores ride along untouched when a collaborator supplied them.
    """

    model_config = ConfigDict(frozen=True)

    overall_score: int = Field(0, ge=0, le=100)
    technical_score: int = Field(0, ge=0, le=100)
    content_score: int = Field(0, ge=0, le=100)
    speed_score: int | None = Field(None, ge=0, le=100)
    local_seo_score: int | None = Field(None, ge=0, le=100)

    @classmethod
    def zero(cls) -> "ScoreBreakdown":
        """Placeholder scores for a target that could not be audited."""
        return cls(overall_score=0, technical_score=0, content_score=0, speed_score=0, local_seo_score=0)


class Issue(BaseModel):
    """A single best-practice deviation found on the page."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    title: str
    description: str
    severity: Severity
    category: str
    fix: str | None = None


class AuditResult(BaseModel):
    """Standardized output of a single-target audit."""

    model_config = ConfigDict(frozen=True)

    url: str
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    technical: TechnicalFindings = Field(default_factory=TechnicalFindings)
    content: ContentFindings = Field(default_factory=ContentFindings)
    scores: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    issues: list[Issue] = Field(default_factory=list)
    speed: SpeedFindings | None = None
    local_seo: LocalFindings | None = None

    @computed_field
    @property
    def all_checks_passed(self) -> bool:
        return not self.issues

    @property
    def critical_count(self) -> int:
        return len([i for i in self.issues if i.severity == Severity.CRITICAL])

    @property
    def warning_count(self) -> int:
        return len([i for i in self.issues if i.severity == Severity.WARNING])


class CompetitorEntry(BaseModel):
    """
    Outcome of auditing one URL inside a comparison.
    A failed audit keeps its URL and error and carries zero scores.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    scores: ScoreBreakdown = Field(default_factory=ScoreBreakdown.zero)
    result: AuditResult | None = None
    error: str | None = None

    @computed_field
    @property
    def scored(self) -> bool:
        return self.error is None and self.result is not None


class CompetitiveGap(BaseModel):
    model_config = ConfigDict(frozen=True)

    area: str
    your_score: int
    competitor_avg: int
    gap: int
    recommendation: str


class CompetitorComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    your_site: CompetitorEntry
    competitors: list[CompetitorEntry] = Field(default_factory=list)
    competitor_averages: dict[str, float] = Field(default_factory=dict)
    gaps: list[CompetitiveGap] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)

    @property
    def failed_urls(self) -> list[str]:
        return [c.url for c in self.competitors if not c.scored]


# ─────────────────────────────────────────────
# Base Engine
# ─────────────────────────────────────────────

class AuditEngine:
    """
    Base class for the audit engines.

    Engines MUST be stateless between calls: configuration and collaborators
    are set once in __init__, page data only ever flows through arguments.
    """

    ENGINE_NAME: str = "base"

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)

    @staticmethod
    def clamp_score(value: float) -> int:
        """Round and clamp a raw score to the 0-100 integer range."""
        return max(0, min(100, round_half_up(value)))
