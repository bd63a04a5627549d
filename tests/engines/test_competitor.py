"""
Tests for the Competitive Comparator.
Audits run against httpx MockTransport; the reduction is also tested directly.
"""

import asyncio

import pytest

from seoscope.engines.auditor.engine import SiteAuditor
from seoscope.engines.base import AuditResult, CompetitorEntry, ScoreBreakdown
from seoscope.engines.competitor import engine as competitor_engine
from seoscope.engines.competitor.engine import (
    ALL_FAILED_MESSAGE,
    NO_COMPETITORS_MESSAGE,
    OUTPERFORM_MESSAGE,
    CompetitiveComparator,
    build_comparison,
    compare_competitors,
    competitor_averages,
)


def entry(url: str, overall: int, technical: int, content: int, speed: int | None = None) -> CompetitorEntry:
    scores = ScoreBreakdown(
        overall_score=overall, technical_score=technical, content_score=content, speed_score=speed,
    )
    return CompetitorEntry(url=url, scores=scores, result=AuditResult(url=url, scores=scores))


def failed(url: str) -> CompetitorEntry:
    return CompetitorEntry(url=url, error="HTTP 500 Internal Server Error")


# ─────────────────────────────────────────────
# Reduction
# ─────────────────────────────────────────────

class TestBuildComparison:

    def test_empty_competitor_list(self):
        comparison = build_comparison(entry("https://me.example/", 70, 70, 70), [])
        assert comparison.gaps == []
        assert comparison.opportunities == [NO_COMPETITORS_MESSAGE]

    def test_all_competitors_failed(self):
        comparison = build_comparison(
            entry("https://me.example/", 70, 70, 70),
            [failed("https://a.example/"), failed("https://b.example/")],
        )
        assert comparison.gaps == []
        assert comparison.opportunities == [ALL_FAILED_MESSAGE]
        assert comparison.failed_urls == ["https://a.example/", "https://b.example/"]

    def test_averages_exclude_placeholders(self):
        competitors = [
            entry("https://a.example/", 80, 90, 60),
            failed("https://b.example/"),
            entry("https://c.example/", 60, 70, 50),
        ]
        averages = competitor_averages(competitors)
        assert averages["overall"] == 70
        assert averages["technical"] == 80
        assert averages["content"] == 55
        assert "speed" not in averages

    def test_placeholder_has_zero_scores(self):
        placeholder = failed("https://b.example/")
        assert placeholder.scores.overall_score == 0
        assert placeholder.scores.technical_score == 0
        assert placeholder.scores.content_score == 0
        assert not placeholder.scored

    def test_gaps_only_for_positive_differences(self):
        comparison = build_comparison(
            entry("https://me.example/", 66, 60, 75),
            [entry("https://a.example/", 82, 85, 78), entry("https://b.example/", 70, 74, 64)],
        )
        # technical avg 79.5 -> gap round(19.5) = 20; content avg 71 < 75 -> no gap
        assert [(g.area, g.gap) for g in comparison.gaps] == [("Technical SEO", 20)]
        assert comparison.gaps[0].your_score == 60
        assert comparison.gaps[0].competitor_avg == 80

    def test_behind_messages(self):
        comparison = build_comparison(
            entry("https://me.example/", 50, 50, 50),
            [entry("https://a.example/", 90, 90, 90), entry("https://b.example/", 70, 70, 70)],
        )
        assert comparison.opportunities[0] == "Close the 30 point gap to match your competitors."
        assert comparison.opportunities[1] == "Study a.example - they have the highest SEO score (90)."
        assert comparison.opportunities[2].startswith("Technical SEO: close the 30 point gap.")

    def test_ahead_messages(self):
        comparison = build_comparison(
            entry("https://me.example/", 95, 95, 95),
            [entry("https://a.example/", 60, 60, 60)],
        )
        assert comparison.opportunities[0] == OUTPERFORM_MESSAGE
        assert "a.example" in comparison.opportunities[1]
        assert comparison.gaps == []

    def test_page_speed_gap_needs_both_sides(self):
        me_without_speed = entry("https://me.example/", 70, 70, 70)
        rivals = [entry("https://a.example/", 70, 70, 70, speed=90)]
        assert build_comparison(me_without_speed, rivals).gaps == []

        me_with_speed = entry("https://me.example/", 70, 70, 70, speed=50)
        gaps = build_comparison(me_with_speed, rivals).gaps
        assert [(g.area, g.gap) for g in gaps] == [("Page Speed", 40)]

    def test_gap_opportunities_sorted_by_size(self):
        comparison = build_comparison(
            entry("https://me.example/", 40, 60, 20),
            [entry("https://a.example/", 80, 70, 90)],
        )
        gap_lines = comparison.opportunities[2:]
        assert gap_lines[0].startswith("Content Quality: close the 70 point gap.")
        assert gap_lines[1].startswith("Technical SEO: close the 10 point gap.")


# ─────────────────────────────────────────────
# Comparator (network mocked)
# ─────────────────────────────────────────────

class TestCompetitiveComparator:

    @pytest.mark.asyncio
    async def test_three_competitors_one_failure(self, make_client, clean_html, poor_html):
        pages = {
            "me.example": (200, poor_html),
            "good.example": (200, clean_html),
            "poor.example": (200, poor_html),
        }
        async with make_client(pages, unreachable={"down.example"}) as client:
            comparator = CompetitiveComparator(auditor=SiteAuditor(client=client, probe_origin=False))
            comparison = await comparator.run(
                "https://me.example",
                ["https://good.example", "https://down.example", "https://poor.example"],
            )

        assert [c.url for c in comparison.competitors] == [
            "https://good.example/", "https://down.example/", "https://poor.example/",
        ]
        assert comparison.failed_urls == ["https://down.example/"]

        placeholder = comparison.competitors[1]
        assert placeholder.scores == ScoreBreakdown.zero()
        assert placeholder.error

        good, poor = comparison.competitors[0], comparison.competitors[2]
        expected = (good.scores.technical_score + poor.scores.technical_score) / 2
        assert comparison.competitor_averages["technical"] == expected
        expected = (good.scores.overall_score + poor.scores.overall_score) / 2
        assert comparison.competitor_averages["overall"] == expected

    @pytest.mark.asyncio
    async def test_empty_list_does_not_raise(self, make_client, poor_html):
        async with make_client({"me.example": (200, poor_html)}) as client:
            comparator = CompetitiveComparator(auditor=SiteAuditor(client=client, probe_origin=False))
            comparison = await comparator.run("https://me.example", [])

        assert comparison.gaps == []
        assert comparison.opportunities == [NO_COMPETITORS_MESSAGE]
        assert comparison.your_site.scored

    @pytest.mark.asyncio
    async def test_reference_failure_is_a_placeholder(self, make_client, poor_html):
        async with make_client({"rival.example": (200, poor_html)}, unreachable={"me.example"}) as client:
            comparator = CompetitiveComparator(auditor=SiteAuditor(client=client, probe_origin=False))
            comparison = await comparator.run("https://me.example", ["https://rival.example"])

        assert not comparison.your_site.scored
        assert comparison.your_site.scores.overall_score == 0
        assert comparison.opportunities[0].startswith("Close the")

    @pytest.mark.asyncio
    async def test_competitor_list_is_capped(self, make_client, poor_html):
        urls = [f"https://rival{i}.example" for i in range(12)]
        pages = {f"rival{i}.example": (200, poor_html) for i in range(12)}
        pages["me.example"] = (200, poor_html)

        async with make_client(pages) as client:
            comparator = CompetitiveComparator(
                auditor=SiteAuditor(client=client, probe_origin=False), max_competitors=9,
            )
            comparison = await comparator.run("https://me.example", urls)

        assert len(comparison.competitors) == 9
        assert comparison.competitors[-1].url == "https://rival8.example/"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_placeholder(self):
        class ExplodingAuditor:
            async def run(self, url):
                raise RuntimeError("parser exploded")

        comparison = await CompetitiveComparator(auditor=ExplodingAuditor()).run(
            "https://me.example", ["https://a.example"],
        )
        assert comparison.competitors[0].error == "parser exploded"
        assert comparison.opportunities == [ALL_FAILED_MESSAGE]

    @pytest.mark.asyncio
    async def test_sequential_by_default(self):
        active = 0
        peak = 0

        class TrackingAuditor:
            async def run(self, url):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                scores = ScoreBreakdown(overall_score=50, technical_score=50, content_score=50)
                return AuditResult(url=url, scores=scores)

        comparator = CompetitiveComparator(auditor=TrackingAuditor(), concurrency=1)
        await comparator.run("https://me.example", [f"https://r{i}.example" for i in range(4)])
        assert peak == 1

    @pytest.mark.asyncio
    async def test_bounded_concurrency_preserves_order(self):
        active = 0
        peak = 0

        class TrackingAuditor:
            async def run(self, url):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                # Later URLs finish first
                await asyncio.sleep(0.05 - int(url[9]) * 0.01)
                active -= 1
                scores = ScoreBreakdown(overall_score=50, technical_score=50, content_score=50)
                return AuditResult(url=url, scores=scores)

        urls = [f"https://r{i}.example" for i in range(4)]
        comparator = CompetitiveComparator(auditor=TrackingAuditor(), concurrency=2)
        comparison = await comparator.run("https://r9.example", urls)

        assert peak == 2
        assert [c.url for c in comparison.competitors] == urls

    @pytest.mark.asyncio
    async def test_failed_entries_carry_normalized_urls(self, make_client, poor_html):
        async with make_client({"me.example": (200, poor_html)}, unreachable={"down.example"}) as client:
            comparator = CompetitiveComparator(auditor=SiteAuditor(client=client, probe_origin=False))
            comparison = await comparator.run("me.example", ["DOWN.example", "   "])

        assert comparison.your_site.url == "https://me.example/"
        assert [c.url for c in comparison.competitors] == ["https://down.example/", "   "]
        assert all(not c.scored for c in comparison.competitors)


# ─────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────

class TestCompareCompetitors:

    @pytest.mark.asyncio
    async def test_builds_and_closes_one_shared_client(self, monkeypatch, make_client, clean_html, poor_html):
        clients = []

        def fake_build_client(**kwargs):
            client = make_client({"me.example": (200, poor_html), "rival.example": (200, clean_html)})
            clients.append(client)
            return client

        monkeypatch.setattr(competitor_engine, "build_client", fake_build_client)
        comparison = await compare_competitors("https://me.example", ["https://rival.example"])

        assert len(clients) == 1
        assert clients[0].is_closed
        assert comparison.competitors[0].url == "https://rival.example/"
        assert comparison.competitor_averages["overall"] == comparison.competitors[0].scores.overall_score
        assert comparison.gaps
