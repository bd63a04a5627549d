"""
Tests for the Issue Detection Engine.
"""

import pytest

from seoscope.engines.base import (
    SEVERITY_RANK,
    CanonicalFinding,
    ContentFindings,
    Headings,
    Images,
    Issue,
    MetaTags,
    MetaTextFinding,
    OpenGraph,
    Security,
    Severity,
    Sitemap,
    StructuredData,
    TechnicalFindings,
)
from seoscope.engines.issues.engine import detect_issues, sort_issues


def clean_technical(**overrides) -> TechnicalFindings:
    fields = dict(
        meta_tags=MetaTags(
            title=MetaTextFinding(value="t" * 45, length=45, score=100),
            description=MetaTextFinding(value="d" * 140, length=140, score=100),
            canonical=CanonicalFinding(exists=True, value="https://greatent.example/"),
        ),
        open_graph=OpenGraph(title=True, description=True, image=True, url=True, type=True, site_name=True),
        headings=Headings(h1_count=1, h1_content=["Welcome"]),
        images=Images(total=1, with_alt=1),
        structured_data=StructuredData(detected=True, types=["MedicalClinic"]),
        security=Security(https=True),
        sitemap=Sitemap(exists=True, url="https://greatent.example/sitemap.xml"),
    )
    fields.update(overrides)
    return TechnicalFindings(**fields)


CLEAN_CONTENT = ContentFindings(word_count=700, readability_score=90, readability_level="Easy")


def ids(issues: list[Issue]) -> list[str]:
    return [i.id for i in issues]


# ─────────────────────────────────────────────
# Individual rules
# ─────────────────────────────────────────────

class TestRules:

    def test_clean_findings_have_no_issues(self):
        assert detect_issues(clean_technical(), CLEAN_CONTENT) == []

    def test_short_title_and_missing_description(self):
        technical = clean_technical(meta_tags=MetaTags(
            title=MetaTextFinding(value="Great ENT Care", length=14, score=70),
            canonical=CanonicalFinding(exists=True),
        ))
        issues = {i.id: i for i in detect_issues(technical, CLEAN_CONTENT)}

        assert issues["title-short"].severity == Severity.WARNING
        assert "14 characters" in issues["title-short"].description
        assert issues["desc-missing"].severity == Severity.CRITICAL

    def test_long_title_and_short_description(self):
        technical = clean_technical(meta_tags=MetaTags(
            title=MetaTextFinding(value="t" * 70, length=70),
            description=MetaTextFinding(value="d" * 50, length=50),
            canonical=CanonicalFinding(exists=True),
        ))
        assert set(ids(detect_issues(technical, CLEAN_CONTENT))) == {"title-long", "desc-short"}

    @pytest.mark.parametrize("h1_count,expected,severity", [
        (0, "h1-missing", Severity.CRITICAL),
        (3, "h1-multiple", Severity.WARNING),
    ])
    def test_h1_rules(self, h1_count, expected, severity):
        issues = detect_issues(clean_technical(headings=Headings(h1_count=h1_count)), CLEAN_CONTENT)
        assert ids(issues) == [expected]
        assert issues[0].severity == severity

    @pytest.mark.parametrize("missing,severity", [
        (1, Severity.WARNING),
        (2, Severity.WARNING),
        (3, Severity.CRITICAL),
    ])
    def test_image_alt_severity_escalates(self, missing, severity):
        technical = clean_technical(images=Images(total=5, with_alt=5 - missing, without_alt=missing))
        issues = detect_issues(technical, CLEAN_CONTENT)
        assert ids(issues) == ["images-alt"]
        assert issues[0].severity == severity
        assert f"{missing} of 5 images" in issues[0].description

    def test_https_missing_is_critical(self):
        issues = detect_issues(clean_technical(security=Security(https=False)), CLEAN_CONTENT)
        assert ids(issues) == ["https-missing"]
        assert issues[0].severity == Severity.CRITICAL
        assert issues[0].category == "Security"

    def test_schema_canonical_sitemap_warnings(self):
        technical = clean_technical(
            structured_data=StructuredData(),
            meta_tags=MetaTags(
                title=MetaTextFinding(value="t" * 45, length=45),
                description=MetaTextFinding(value="d" * 140, length=140),
            ),
            sitemap=Sitemap(),
        )
        issues = detect_issues(technical, CLEAN_CONTENT)
        assert ids(issues) == ["schema-missing", "canonical-missing", "sitemap-missing"]
        assert all(i.severity == Severity.WARNING for i in issues)

    def test_incomplete_open_graph_is_info(self):
        issues = detect_issues(clean_technical(open_graph=OpenGraph(title=True)), CLEAN_CONTENT)
        assert ids(issues) == ["og-incomplete"]
        assert issues[0].severity == Severity.INFO
        assert "Only 1 of 6" in issues[0].description

    def test_thin_content(self):
        issues = detect_issues(clean_technical(), ContentFindings(word_count=120, readability_score=90))
        assert ids(issues) == ["content-thin"]
        assert "120 words" in issues[0].description

    def test_short_but_not_thin_content_raises_nothing(self):
        assert detect_issues(clean_technical(), ContentFindings(word_count=450, readability_score=90)) == []


# ─────────────────────────────────────────────
# Ordering
# ─────────────────────────────────────────────

class TestOrdering:

    def test_poor_page_ordering(self):
        technical = TechnicalFindings(security=Security(https=False))
        issues = detect_issues(technical, ContentFindings(word_count=100, readability_score=100))

        ranks = [SEVERITY_RANK[Severity(i.severity)] for i in issues]
        assert ranks == sorted(ranks)
        assert len([i for i in issues if i.severity == Severity.CRITICAL]) >= 4
        assert ids(issues)[:4] == ["title-missing", "desc-missing", "h1-missing", "https-missing"]

    def test_sort_is_stable(self):
        issues = [
            Issue(id="a", title="a", description="", severity=Severity.INFO, category="x"),
            Issue(id="b", title="b", description="", severity=Severity.WARNING, category="x"),
            Issue(id="c", title="c", description="", severity=Severity.CRITICAL, category="x"),
            Issue(id="d", title="d", description="", severity=Severity.WARNING, category="x"),
        ]
        assert ids(sort_issues(issues)) == ["c", "b", "d", "a"]

    def test_deterministic(self):
        technical = TechnicalFindings()
        content = ContentFindings()
        assert detect_issues(technical, content) == detect_issues(technical, content)

    def test_severity_serializes_as_string(self):
        issue = detect_issues(TechnicalFindings(), ContentFindings())[0]
        assert issue.model_dump()["severity"] == "critical"
