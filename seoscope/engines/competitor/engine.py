"""
Competitive Comparator

Audits a reference URL and up to COMPETITOR_MAX_URLS competitors, then
reduces the outcomes into per-dimension gaps and ranked opportunities.

Scheduling:
- Sequential by default to keep outbound fetches toward third-party hosts at one
- COMPETITOR_CONCURRENCY > 1 switches to a semaphore-bounded gather; output
  order always follows input order

Failure model:
- Each URL yields a CompetitorEntry; a failed audit becomes a zero-score
  placeholder carrying its error and never aborts the batch
- Competitor averages use scored entries only
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlparse

import structlog
from pydantic import ValidationError

from seoscope.core.config import get_settings
from seoscope.core.exceptions import FetchFailed
from seoscope.core.http import build_client
from seoscope.engines.auditor.engine import SiteAuditor
from seoscope.engines.base import (
    AuditEngine,
    AuditTarget,
    CompetitiveGap,
    CompetitorComparison,
    CompetitorEntry,
    ScoreBreakdown,
    round_half_up,
)

logger = structlog.get_logger(__name__)

NO_COMPETITORS_MESSAGE = "No competitor websites were provided. Add competitor URLs to compare your SEO scores."
ALL_FAILED_MESSAGE = "Unable to analyze competitor websites. Please check the URLs."
OUTPERFORM_MESSAGE = "Your website outperforms the average competitor! Maintain your SEO advantage."

# (score dimension, gap label, remediation)
GAP_AREAS: list[tuple[str, str, str]] = [
    (
        "technical",
        "Technical SEO",
        "Improve meta tags, heading structure, and schema markup to match competitors.",
    ),
    (
        "content",
        "Content Quality",
        "Add more comprehensive content, improve readability, and target relevant keywords.",
    ),
    (
        "speed",
        "Page Speed",
        "Optimize images, reduce JavaScript, and improve server response times.",
    ),
]

SCORE_FIELDS = {
    "overall": "overall_score",
    "technical": "technical_score",
    "content": "content_score",
    "speed": "speed_score",
    "local_seo": "local_seo_score",
}


def _score_of(entry: CompetitorEntry, dimension: str) -> int | None:
    return getattr(entry.scores, SCORE_FIELDS[dimension])


def _hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or url
    except ValueError:
        return url


def competitor_averages(entries: list[CompetitorEntry]) -> dict[str, float]:
    """Mean score per dimension over scored entries; dimensions nobody reported are omitted."""
    scored = [e for e in entries if e.scored]
    averages: dict[str, float] = {}
    for dimension in SCORE_FIELDS:
        values = [v for v in (_score_of(e, dimension) for e in scored) if v is not None]
        if values:
            averages[dimension] = sum(values) / len(values)
    return averages


def build_comparison(your_site: CompetitorEntry, competitors: list[CompetitorEntry]) -> CompetitorComparison:
    """Pure reduction of audit outcomes into gaps and opportunities."""
    scored = [c for c in competitors if c.scored]

    if not competitors or not scored:
        return CompetitorComparison(
            your_site=your_site,
            competitors=competitors,
            opportunities=[NO_COMPETITORS_MESSAGE if not competitors else ALL_FAILED_MESSAGE],
        )

    averages = competitor_averages(competitors)

    gaps: list[CompetitiveGap] = []
    for dimension, area, recommendation in GAP_AREAS:
        yours = _score_of(your_site, dimension)
        avg = averages.get(dimension)
        if yours is None or avg is None:
            continue
        gap = round_half_up(avg - yours)
        if gap > 0:
            gaps.append(CompetitiveGap(
                area=area,
                your_score=yours,
                competitor_avg=round_half_up(avg),
                gap=gap,
                recommendation=recommendation,
            ))

    your_overall = your_site.scores.overall_score
    avg_overall = averages["overall"]

    opportunities: list[str] = []
    if your_overall > avg_overall:
        opportunities.append(OUTPERFORM_MESSAGE)
    else:
        opportunities.append(
            f"Close the {round_half_up(avg_overall - your_overall)} point gap to match your competitors."
        )

    best = max(scored, key=lambda c: c.scores.overall_score)
    best_score = best.scores.overall_score
    if best_score > your_overall:
        opportunities.append(
            f"Study {_hostname(best.url)} - they have the highest SEO score ({best_score})."
        )
    else:
        opportunities.append(
            f"{_hostname(best.url)} is your strongest competitor ({best_score}); keep it as your benchmark."
        )

    for gap in sorted(gaps, key=lambda g: g.gap, reverse=True):
        opportunities.append(f"{gap.area}: close the {gap.gap} point gap. {gap.recommendation}")

    return CompetitorComparison(
        your_site=your_site,
        competitors=competitors,
        competitor_averages={k: round(v, 2) for k, v in averages.items()},
        gaps=gaps,
        opportunities=opportunities,
    )


def normalized_url(url: str) -> str:
    """The URL as an audit would report it, or the input when it does not parse."""
    try:
        return AuditTarget(url=url).url
    except ValidationError:
        return url

class CompetitiveComparator(AuditEngine):

    ENGINE_NAME = "competitor"

    def __init__(
        self,
        auditor: SiteAuditor | None = None,
        max_competitors: int | None = None,
        concurrency: int | None = None,
    ):
        super().__init__()
        settings = get_settings()
        self.auditor = auditor
        self.max_competitors = settings.COMPETITOR_MAX_URLS if max_competitors is None else max_competitors
        self.concurrency = max(1, settings.COMPETITOR_CONCURRENCY if concurrency is None else concurrency)

    async def run(self, your_url: str, competitor_urls: list[str]) -> CompetitorComparison:
        if len(competitor_urls) > self.max_competitors:
            self.logger.warning(
                "Competitor list truncated",
                requested=len(competitor_urls),
                limit=self.max_competitors,
            )
        urls = [your_url, *competitor_urls[: self.max_competitors]]

        self.logger.info("Comparison starting", your_url=your_url, competitors=len(urls) - 1)

        if self.auditor is not None:
            entries = await self._audit_all(self.auditor, urls)
        else:
            async with build_client() as client:
                entries = await self._audit_all(SiteAuditor(client=client), urls)

        comparison = build_comparison(entries[0], entries[1:])
        self.logger.info(
            "Comparison complete",
            your_url=your_url,
            scored=len([c for c in comparison.competitors if c.scored]),
            failed=len(comparison.failed_urls),
            gaps=len(comparison.gaps),
        )
        return comparison

    async def _audit_all(self, auditor: SiteAuditor, urls: list[str]) -> list[CompetitorEntry]:
        if self.concurrency == 1:
            return [await self._audit_one(auditor, url) for url in urls]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(url: str) -> CompetitorEntry:
            async with semaphore:
                return await self._audit_one(auditor, url)

        return list(await asyncio.gather(*(bounded(url) for url in urls)))

    async def _audit_one(self, auditor: SiteAuditor, url: str) -> CompetitorEntry:
        try:
            result = await auditor.run(url)
        except FetchFailed as exc:
            self.logger.warning("Competitor audit failed, using placeholder", url=url, error=exc.reason)
            return CompetitorEntry(url=normalized_url(url), scores=ScoreBreakdown.zero(), error=exc.reason)
        except Exception as exc:
            self.logger.error("Competitor audit crashed, using placeholder", url=url, error=str(exc), exc_info=True)
            return CompetitorEntry(
                url=normalized_url(url),
                scores=ScoreBreakdown.zero(),
                error=str(exc) or exc.__class__.__name__,
            )

        return CompetitorEntry(url=result.url, scores=result.scores, result=result)


async def compare_competitors(your_url: str, competitor_urls: list[str]) -> CompetitorComparison:
    return await CompetitiveComparator().run(your_url, competitor_urls)
