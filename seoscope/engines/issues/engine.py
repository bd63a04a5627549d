"""
Issue Detection Engine

Re-derives severity-ranked, human-actionable issues from the findings records.
Each rule maps one signal condition to at most one issue. Ordering is a
stable sort on severity (critical, warning, info); ties keep detection order,
so re-running the detector on the same findings yields the same list.
"""

from __future__ import annotations

import structlog

from seoscope.core.rules import DEFAULT_SCORING, ScoringConfig
from seoscope.engines.base import (
    SEVERITY_RANK,
    ContentFindings,
    Issue,
    Severity,
    TechnicalFindings,
)

logger = structlog.get_logger(__name__)


def sort_issues(issues: list[Issue]) -> list[Issue]:
    return sorted(issues, key=lambda issue: SEVERITY_RANK[Severity(issue.severity)])


def _meta_issues(technical: TechnicalFindings, config: ScoringConfig) -> list[Issue]:
    issues: list[Issue] = []
    title = technical.meta_tags.title
    description = technical.meta_tags.description

    if not title.value:
        issues.append(Issue(
            id="title-missing",
            title="Missing Title Tag",
            description="Your page is missing a title tag, which is critical for SEO and user experience.",
            severity=Severity.CRITICAL,
            category="Meta Tags",
            fix=f"Add a unique, descriptive title tag between {config.title_min_length}-{config.title_max_length} characters.",
        ))
    elif title.length < config.title_min_length:
        issues.append(Issue(
            id="title-short",
            title="Title Too Short",
            description=(
                f"Your title is only {title.length} characters. "
                f"It should be at least {config.title_min_length} characters."
            ),
            severity=Severity.WARNING,
            category="Meta Tags",
            fix="Expand your title to include more relevant keywords.",
        ))
    elif title.length > config.title_max_length:
        issues.append(Issue(
            id="title-long",
            title="Title Too Long",
            description=f"Your title is {title.length} characters. It may be truncated in search results.",
            severity=Severity.WARNING,
            category="Meta Tags",
            fix=f"Shorten your title to under {config.title_max_length} characters.",
        ))

    if not description.value:
        issues.append(Issue(
            id="desc-missing",
            title="Missing Meta Description",
            description="Your page is missing a meta description, reducing click-through rates from search results.",
            severity=Severity.CRITICAL,
            category="Meta Tags",
            fix=(
                "Add a compelling meta description between "
                f"{config.description_min_length}-{config.description_max_length} characters."
            ),
        ))
    elif description.length < config.description_min_length:
        issues.append(Issue(
            id="desc-short",
            title="Meta Description Too Short",
            description=(
                f"Your description is only {description.length} characters. "
                f"Aim for at least {config.description_min_length} characters."
            ),
            severity=Severity.WARNING,
            category="Meta Tags",
        ))
    elif description.length > config.description_max_length:
        issues.append(Issue(
            id="desc-long",
            title="Meta Description Too Long",
            description=f"Your description is {description.length} characters and may be truncated.",
            severity=Severity.WARNING,
            category="Meta Tags",
        ))

    return issues


def _heading_issues(technical: TechnicalFindings) -> list[Issue]:
    h1_count = technical.headings.h1_count
    if h1_count == 0:
        return [Issue(
            id="h1-missing",
            title="Missing H1 Tag",
            description="Your page is missing an H1 heading, which is important for SEO and accessibility.",
            severity=Severity.CRITICAL,
            category="Headings",
            fix="Add a single H1 tag that describes the main topic of your page.",
        )]
    if h1_count > 1:
        return [Issue(
            id="h1-multiple",
            title="Multiple H1 Tags",
            description=f"Your page has {h1_count} H1 tags. Best practice is to have exactly one.",
            severity=Severity.WARNING,
            category="Headings",
            fix="Consolidate to a single H1 tag and use H2-H6 for subheadings.",
        )]
    return []


def detect_issues(
    technical: TechnicalFindings,
    content: ContentFindings,
    config: ScoringConfig = DEFAULT_SCORING,
) -> list[Issue]:
    """
    Pure function: findings -> ordered issues.

    An empty list means every check passed; callers should present it as such.
    """
    issues = _meta_issues(technical, config) + _heading_issues(technical)

    images = technical.images
    if images.without_alt > 0:
        issues.append(Issue(
            id="images-alt",
            title="Images Missing Alt Text",
            description=(
                f"{images.without_alt} of {images.total} images are missing alt text, "
                "hurting accessibility and SEO."
            ),
            severity=Severity.CRITICAL if images.without_alt > config.images_alt_critical_above else Severity.WARNING,
            category="Images",
            fix="Add descriptive alt text to all images.",
        ))

    if not technical.security.https:
        issues.append(Issue(
            id="https-missing",
            title="Not Using HTTPS",
            description="Your site is not using HTTPS, which is a ranking factor and security concern.",
            severity=Severity.CRITICAL,
            category="Security",
            fix="Install an SSL certificate and redirect HTTP to HTTPS.",
        ))

    if not technical.structured_data.detected:
        issues.append(Issue(
            id="schema-missing",
            title="No Structured Data Found",
            description="Adding Schema.org markup can enhance your search appearance with rich snippets.",
            severity=Severity.WARNING,
            category="Structured Data",
            fix="Add relevant Schema.org markup (LocalBusiness, MedicalClinic, etc.).",
        ))

    if not technical.meta_tags.canonical.exists:
        issues.append(Issue(
            id="canonical-missing",
            title="Missing Canonical URL",
            description="Without a canonical URL, search engines may index duplicate content.",
            severity=Severity.WARNING,
            category="Technical",
            fix="Add a canonical link element pointing to the preferred URL.",
        ))

    if not technical.sitemap.exists:
        issues.append(Issue(
            id="sitemap-missing",
            title="Sitemap Not Found",
            description="A sitemap helps search engines discover and index your pages.",
            severity=Severity.WARNING,
            category="Technical",
            fix="Create and submit an XML sitemap to search engines.",
        ))

    og_present = technical.open_graph.present_count
    if og_present < config.open_graph_min_fields:
        issues.append(Issue(
            id="og-incomplete",
            title="Incomplete Open Graph Tags",
            description=(
                f"Only {og_present} of 6 Open Graph tags are present, "
                "which may result in poor social media previews."
            ),
            severity=Severity.INFO,
            category="Social",
            fix="Add og:title, og:description, og:image, and og:url tags.",
        ))

    if content.word_count < config.thin_content_words:
        issues.append(Issue(
            id="content-thin",
            title="Thin Content",
            description=f"Your page has only {content.word_count} words. Consider adding more valuable content.",
            severity=Severity.WARNING,
            category="Content",
            fix=f"Aim for at least {config.thin_content_words}-500 words of unique, valuable content.",
        ))

    return sort_issues(issues)
