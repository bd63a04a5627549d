"""
Outbound HTTP for the audit pipeline.

- PageFetcher: fetches target markup; any transport error, timeout or
  non-2xx response becomes a FetchFailed
- OriginProbe: best-effort robots.txt / sitemap.xml checks; failures read
  as "does not exist" and are never raised
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from urllib.robotparser import RobotFileParser

import httpx
import structlog

from seoscope.core.config import get_settings
from seoscope.core.exceptions import FetchFailed
from seoscope.engines.base import AuditTarget, PageSnapshot, RobotsTxt, Sitemap

logger = structlog.get_logger(__name__)


def build_client(timeout: float | None = None, **kwargs) -> httpx.AsyncClient:
    """AsyncClient with the audit user agent and redirect following."""
    settings = get_settings()
    headers = {
        "User-Agent": settings.FETCH_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    return httpx.AsyncClient(
        headers=headers,
        follow_redirects=True,
        timeout=timeout if timeout is not None else settings.FETCH_TIMEOUT,
        **kwargs,
    )


class PageFetcher:
    """Fetches the raw markup of an audit target."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None):
        self.client = client
        self.timeout = timeout if timeout is not None else get_settings().FETCH_TIMEOUT

    async def fetch(self, target: AuditTarget) -> PageSnapshot:
        start = time.perf_counter()
        try:
            response = await self.client.get(target.url, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            logger.warning("Page fetch timed out", url=target.url, timeout=self.timeout)
            raise FetchFailed(target.url, f"timed out after {self.timeout}s") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Page fetch failed", url=target.url, error=str(exc))
            raise FetchFailed(target.url, str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            logger.warning("Page fetch returned error status", url=target.url, status=response.status_code)
            raise FetchFailed(
                target.url,
                f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                status_code=response.status_code,
            )

        elapsed = (time.perf_counter() - start) * 1000
        return PageSnapshot(
            url=target.url,
            final_url=str(response.url),
            status_code=response.status_code,
            html=response.text,
            headers=dict(response.headers),
            load_time_ms=round(elapsed, 2),
        )


@dataclass(frozen=True)
class ProbeResult:
    robots_txt: RobotsTxt
    sitemap: Sitemap


class OriginProbe:
    """Checks the target origin for robots.txt and sitemap.xml."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None):
        self.client = client
        self.timeout = timeout if timeout is not None else get_settings().PROBE_TIMEOUT

    async def probe(self, target: AuditTarget) -> ProbeResult:
        return ProbeResult(
            robots_txt=await self.check_robots_txt(target),
            sitemap=await self.check_sitemap(target),
        )

    async def check_robots_txt(self, target: AuditTarget) -> RobotsTxt:
        robots_url = f"{target.origin}/robots.txt"
        response = await self._get(robots_url)
        if response is None or not response.is_success:
            return RobotsTxt(exists=False, allows_crawling=True)

        parser = RobotFileParser(robots_url)
        parser.parse(response.text.splitlines())
        user_agent = get_settings().FETCH_USER_AGENT
        return RobotsTxt(exists=True, allows_crawling=parser.can_fetch(user_agent, target.url))

    async def check_sitemap(self, target: AuditTarget) -> Sitemap:
        sitemap_url = f"{target.origin}/sitemap.xml"
        response = await self._get(sitemap_url)
        if response is None or not response.is_success:
            return Sitemap(exists=False, url=None)
        return Sitemap(exists=True, url=sitemap_url)

    async def _get(self, url: str) -> httpx.Response | None:
        try:
            return await self.client.get(url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Origin probe failed", url=url, error=str(e))
            return None
