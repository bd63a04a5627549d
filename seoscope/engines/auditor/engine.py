"""
Single-Target Auditor

Flow:
1. Normalize the URL into an AuditTarget
2. Fetch markup (transport failure / non-2xx / timeout -> FetchFailed)
3. Signal Extractor + origin probe -> TechnicalFindings
4. Content Analyzer -> ContentFindings
5. Score Calculator + Issue Detector (pure)
6. Assemble the immutable AuditResult

Malformed markup never fails an audit; only the fetch can.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import structlog
from pydantic import ValidationError

from seoscope.core.exceptions import FetchFailed
from seoscope.core.http import OriginProbe, PageFetcher, build_client
from seoscope.core.logging import audit_context
from seoscope.core.rules import DEFAULT_SCORING, ScoringConfig
from seoscope.engines.base import AuditEngine, AuditResult, AuditTarget
from seoscope.engines.content.engine import ContentAnalyzer
from seoscope.engines.issues.engine import detect_issues
from seoscope.engines.scoring.engine import calculate_scores
from seoscope.engines.signals.engine import SignalExtractor
from seoscope.integrations.local import LocalFindings
from seoscope.integrations.speed import SpeedFindings

logger = structlog.get_logger(__name__)


class SiteAuditor(AuditEngine):
    """
    Audits one URL end to end.

    An injected httpx client is reused and left open; otherwise a client is
    created and closed per audit.
    """

    ENGINE_NAME = "auditor"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        config: ScoringConfig = DEFAULT_SCORING,
        probe_origin: bool = True,
    ):
        super().__init__()
        self.client = client
        self.config = config
        self.probe_origin = probe_origin
        self.extractor = SignalExtractor(config)
        self.analyzer = ContentAnalyzer(config)

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with build_client() as client:
            yield client

    async def run(
        self,
        url: str,
        speed_score: int | None = None,
        local_seo_score: int | None = None,
        speed: SpeedFindings | None = None,
        local_seo: LocalFindings | None = None,
    ) -> AuditResult:
        """
        Audit a single URL.

        Pre-computed collaborator output is attached as-is. An explicit
        speed_score / local_seo_score wins over the score inside the
        corresponding findings record.
        """
        try:
            target = AuditTarget(url=url)
        except ValidationError as exc:
            raise FetchFailed(str(url), "invalid URL") from exc

        with audit_context(target.url):
            return await self._audit(target, speed_score, local_seo_score, speed, local_seo)

    async def _audit(
        self,
        target: AuditTarget,
        speed_score: int | None,
        local_seo_score: int | None,
        speed: SpeedFindings | None,
        local_seo: LocalFindings | None,
    ) -> AuditResult:
        start = time.perf_counter()
        self.logger.info("Audit starting", url=target.url)

        async with self._http() as client:
            snapshot = await PageFetcher(client).fetch(target)
            probe = OriginProbe(client) if self.probe_origin else None
            technical = await self.extractor.run(snapshot, target, probe=probe)

        content = self.analyzer.run(snapshot.html)

        if speed_score is None and speed is not None:
            speed_score = speed.performance
        if local_seo_score is None and local_seo is not None:
            local_seo_score = local_seo.overall_score

        scores = calculate_scores(
            technical,
            content,
            self.config,
            speed_score=speed_score,
            local_seo_score=local_seo_score,
        )
        issues = detect_issues(technical, content, self.config)

        result = AuditResult(
            url=target.url,
            technical=technical,
            content=content,
            scores=scores,
            issues=issues,
            speed=speed,
            local_seo=local_seo,
        )

        elapsed = (time.perf_counter() - start) * 1000
        self.logger.info(
            "Audit complete",
            url=target.url,
            overall_score=scores.overall_score,
            technical_score=scores.technical_score,
            content_score=scores.content_score,
            issue_count=len(issues),
            critical_count=result.critical_count,
            elapsed_ms=round(elapsed, 2),
        )
        return result


async def audit_single_target(
    url: str,
    speed_score: int | None = None,
    local_seo_score: int | None = None,
) -> AuditResult:
    """Audit one URL with a fresh HTTP client."""
    return await SiteAuditor().run(url, speed_score=speed_score, local_seo_score=local_seo_score)
