"""
Signal Extractor Engine

Turns raw page markup into TechnicalFindings:
- Title and named/property meta tags (description, robots, viewport, canonical)
- Open Graph and Twitter Card presence
- Heading counts (H1 text captured) and hierarchy
- Image alt coverage
- Internal / external / nofollow link counts
- JSON-LD structured data types
- HTTPS and mixed content
- robots.txt / sitemap.xml presence (via an optional origin probe)

Missing or malformed markup never raises; absent signals fall back to
defaults and surface through the per-record "issues" lists instead.
"""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urljoin, urlparse

import structlog
from bs4 import BeautifulSoup, Tag

from seoscope.core.http import OriginProbe
from seoscope.core.markup import collapse, make_soup
from seoscope.core.rules import DEFAULT_SCORING, ScoringConfig
from seoscope.engines.base import (
    AuditEngine,
    AuditTarget,
    CanonicalFinding,
    Headings,
    Images,
    Links,
    MetaTags,
    MetaTextFinding,
    OpenGraph,
    PageSnapshot,
    RobotsFinding,
    Security,
    StructuredData,
    TechnicalFindings,
    TwitterCard,
    ViewportFinding,
)

logger = structlog.get_logger(__name__)

# Insecure subresources: src/action anywhere, href only on <link>
HTTP_RESOURCE_PATTERN = re.compile(
    r'(?:\b(?:src|action)\s*=\s*["\']http://)|(?:<link\b[^>]*\bhref\s*=\s*["\']http://)',
    re.IGNORECASE,
)
SKIPPED_LINK_SCHEMES = ("mailto:", "tel:", "javascript:", "data:", "sms:")

OPEN_GRAPH_FIELDS = {
    "title": "og:title",
    "description": "og:description",
    "image": "og:image",
    "url": "og:url",
    "type": "og:type",
    "site_name": "og:site_name",
}

TWITTER_FIELDS = {
    "card": "twitter:card",
    "title": "twitter:title",
    "description": "twitter:description",
    "image": "twitter:image",
}


class SignalExtractor(AuditEngine):
    """
    Extracts structural and technical SEO signals from one page.
    The markup pass is pure; the origin probe is the only I/O.
    """

    ENGINE_NAME = "signals"

    def __init__(self, config: ScoringConfig = DEFAULT_SCORING):
        super().__init__()
        self.config = config

    async def run(
        self,
        snapshot: PageSnapshot,
        target: AuditTarget,
        probe: OriginProbe | None = None,
    ) -> TechnicalFindings:
        findings = self.extract(snapshot.html, target)
        if probe is None:
            return findings

        probed = await probe.probe(target)
        self.logger.debug(
            "Origin probed",
            url=target.url,
            robots_txt=probed.robots_txt.exists,
            sitemap=probed.sitemap.exists,
        )
        return findings.model_copy(update={"robots_txt": probed.robots_txt, "sitemap": probed.sitemap})

    def extract(self, html: str | None, target: AuditTarget) -> TechnicalFindings:
        """Markup-only extraction. robots.txt / sitemap keep their defaults."""
        soup = make_soup(html)
        meta = self._collect_meta(soup)

        return TechnicalFindings(
            meta_tags=self._meta_tags(soup, meta),
            open_graph=OpenGraph(**{field: bool(meta.get(key)) for field, key in OPEN_GRAPH_FIELDS.items()}),
            twitter_card=TwitterCard(**{field: bool(meta.get(key)) for field, key in TWITTER_FIELDS.items()}),
            headings=self._headings(soup),
            images=self._images(soup),
            links=self._links(soup, target),
            structured_data=self._structured_data(soup),
            security=Security(
                https=target.is_https,
                mixed_content=target.is_https and bool(HTTP_RESOURCE_PATTERN.search(html or "")),
            ),
        )

    # ── Meta tags ──────────────────────────────────

    @staticmethod
    def _collect_meta(soup: BeautifulSoup) -> dict[str, str]:
        """First non-empty content per lower-cased name/property, whatever the attribute order."""
        meta: dict[str, str] = {}
        for tag in soup.find_all("meta"):
            content = collapse(tag.get("content"))
            if not content:
                continue
            for attr in ("name", "property"):
                key = (tag.get(attr) or "").strip().lower()
                if key and key not in meta:
                    meta[key] = content
        return meta

    def _meta_tags(self, soup: BeautifulSoup, meta: dict[str, str]) -> MetaTags:
        title_tag = soup.find("title")
        title = collapse(title_tag.get_text()) if title_tag else ""

        canonical = meta.get("canonical") or self._canonical_link(soup)
        robots = meta.get("robots")
        viewport = meta.get("viewport")

        return MetaTags(
            title=self._text_finding(
                title or None,
                self.config.title_min_length,
                self.config.title_max_length,
                missing="Missing title tag",
                label="Title",
            ),
            description=self._text_finding(
                meta.get("description"),
                self.config.description_min_length,
                self.config.description_max_length,
                missing="Missing meta description",
                label="Meta description",
            ),
            canonical=CanonicalFinding(exists=bool(canonical), value=canonical),
            robots=RobotsFinding(value=robots, is_indexable=not robots or "noindex" not in robots.lower()),
            viewport=ViewportFinding(exists=bool(viewport), value=viewport),
        )

    @staticmethod
    def _canonical_link(soup: BeautifulSoup) -> str | None:
        for link in soup.find_all("link"):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if any(r.lower() == "canonical" for r in rel):
                href = (link.get("href") or "").strip()
                if href:
                    return href
        return None

    @staticmethod
    def _text_finding(value: str | None, min_len: int, max_len: int, missing: str, label: str) -> MetaTextFinding:
        if not value:
            return MetaTextFinding(value=None, length=0, score=0, issues=[missing])

        length = len(value)
        issues = []
        if length < min_len:
            issues.append(f"{label} is too short (under {min_len} characters)")
        if length > max_len:
            issues.append(f"{label} is too long (over {max_len} characters)")
        return MetaTextFinding(value=value, length=length, score=70 if issues else 100, issues=issues)

    # ── Headings ───────────────────────────────────

    @staticmethod
    def _headings(soup: BeautifulSoup) -> Headings:
        counts = {level: len(soup.find_all(f"h{level}")) for level in range(1, 7)}
        h1_content = [
            text for text in (collapse(h.get_text(" ")) for h in soup.find_all("h1")) if text
        ]

        issues = []
        if counts[1] == 0:
            issues.append("Missing H1 tag")
        elif counts[1] > 1:
            issues.append(f"Multiple H1 tags found ({counts[1]})")

        return Headings(
            h1_count=counts[1],
            h1_content=h1_content,
            h2_count=counts[2],
            h3_count=counts[3],
            h4_count=counts[4],
            h5_count=counts[5],
            h6_count=counts[6],
            hierarchy_valid=counts[1] == 1 and (counts[2] == 0 or counts[1] <= counts[2]),
            issues=issues,
        )

    # ── Images ─────────────────────────────────────

    @staticmethod
    def _images(soup: BeautifulSoup) -> Images:
        imgs = soup.find_all("img")
        with_alt = len([img for img in imgs if img.get("alt")])
        without_alt = len(imgs) - with_alt

        issues = []
        if without_alt:
            issues.append(f"{without_alt} image(s) missing alt text")
        return Images(total=len(imgs), with_alt=with_alt, without_alt=without_alt, issues=issues)

    # ── Links ──────────────────────────────────────

    @staticmethod
    def _links(soup: BeautifulSoup, target: AuditTarget) -> Links:
        internal = external = nofollow = 0
        base_host = target.hostname

        for a in soup.find_all("a", href=True):
            rel = a.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if any(r.lower() == "nofollow" for r in rel):
                nofollow += 1

            href = a["href"].strip()
            if not href or href.lower().startswith(SKIPPED_LINK_SCHEMES):
                continue
            if href.startswith(("#", "/")):
                internal += 1
                continue

            try:
                host = urlparse(urljoin(target.url, href)).hostname
            except ValueError:
                # Unparseable hrefs count as internal
                internal += 1
                continue

            if host is None or host == base_host:
                internal += 1
            else:
                external += 1

        return Links(internal=internal, external=external, nofollow=nofollow)

    # ── Structured data ────────────────────────────

    def _structured_data(self, soup: BeautifulSoup) -> StructuredData:
        types: list[str] = []
        errors: list[str] = []

        for index, script in enumerate(self._json_ld_scripts(soup)):
            raw = script.get_text()
            try:
                data = json.loads(raw)
            except ValueError as e:
                logger.debug("Skipping invalid JSON-LD block", block=index, error=str(e))
                errors.append(f"JSON-LD block {index + 1} is not valid JSON")
                continue
            types.extend(self._declared_types(data))

        return StructuredData(detected=bool(types), types=types, errors=errors)

    @staticmethod
    def _json_ld_scripts(soup: BeautifulSoup) -> list[Tag]:
        return [
            script for script in soup.find_all("script")
            if (script.get("type") or "").strip().lower() == "application/ld+json"
        ]

    def _declared_types(self, data: Any) -> list[str]:
        if isinstance(data, list):
            return [t for item in data for t in self._declared_types(item)]
        if not isinstance(data, dict):
            return []

        found = []
        declared = data.get("@type")
        if isinstance(declared, list):
            joined = ", ".join(str(t) for t in declared if t)
            if joined:
                found.append(joined)
        elif declared:
            found.append(str(declared))

        graph = data.get("@graph")
        if isinstance(graph, list):
            found.extend(self._declared_types(graph))
        return found
