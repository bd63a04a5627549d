"""
Recommendation collaborator.

Sends a summary of an AuditResult to an OpenAI-compatible chat-completions
endpoint and expects back a JSON array of
{priority, category, title, description, howToFix, estimatedImpact} records.

Every failure mode (no API key, transport error, non-2xx, empty or
unparseable reply, records that fail validation) degrades to a single
generic recommendation. The audit itself is never failed by this step.
"""

from __future__ import annotations

import json
import re
from typing import Any, Literal

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from seoscope.core.config import get_settings
from seoscope.core.exceptions import RecommendationGenerationFailed
from seoscope.engines.base import AuditResult

logger = structlog.get_logger(__name__)

FENCED_JSON_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

SYSTEM_PROMPT = """You are an expert SEO consultant. Analyze SEO audit results and provide specific, actionable recommendations prioritized by impact.

Focus on:
1. Critical issues that hurt rankings (must fix immediately)
2. Quick wins that can be implemented in under an hour
3. High-impact improvements for sustained growth
4. Local SEO for businesses with a physical presence

Return a JSON array of recommendations. Each item must have these exact fields:
{
  "priority": "critical" | "high" | "medium" | "low",
  "category": "string (e.g., Meta Tags, Content, Technical, Local SEO)",
  "title": "string",
  "description": "string",
  "howToFix": "string with specific steps",
  "estimatedImpact": "string describing the expected improvement"
}"""


class Recommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    priority: Literal["critical", "high", "medium", "low"]
    category: str
    title: str
    description: str
    how_to_fix: str = Field(alias="howToFix")
    estimated_impact: str = Field(alias="estimatedImpact")


FALLBACK_RECOMMENDATION = Recommendation(
    priority="high",
    category="General",
    title="SEO Analysis Complete",
    description="Review the technical analysis above to identify improvement opportunities.",
    how_to_fix="Address the issues flagged in the technical, content, and speed analysis sections.",
    estimated_impact="Varies based on specific issues addressed",
)

_recommendation_list = TypeAdapter(list[Recommendation])


def _present(flag: bool) -> str:
    return "Present" if flag else "Missing"


def build_prompt(result: AuditResult) -> str:
    """User prompt summarizing one audit."""
    technical = result.technical
    content = result.content
    meta = technical.meta_tags
    og = technical.open_graph

    keywords = ", ".join(f"{k.word} ({k.density}%)" for k in content.top_keywords[:5]) or "None analyzed"
    schema = ", ".join(technical.structured_data.types) if technical.structured_data.detected else "None detected"

    lines = [
        "Analyze this SEO audit and provide 5-8 prioritized recommendations:",
        "",
        f"URL: {result.url}",
        f"Overall Score: {result.scores.overall_score}/100",
        f"Technical Score: {result.scores.technical_score}/100",
        f"Content Score: {result.scores.content_score}/100",
    ]
    if result.scores.speed_score is not None:
        lines.append(f"Speed Score: {result.scores.speed_score}/100")
    if result.scores.local_seo_score is not None:
        lines.append(f"Local SEO Score: {result.scores.local_seo_score}/100")

    lines += [
        "",
        "Technical Analysis:",
        f"- Title: {meta.title.value or 'Missing'} ({meta.title.length} chars)",
        f"- Meta Description: {_present(bool(meta.description.value))} ({meta.description.length} chars)",
        f"- H1 Tags: {technical.headings.h1_count} found",
        f"- H1 Content: {', '.join(technical.headings.h1_content) or 'None'}",
        f"- Images without alt: {technical.images.without_alt} of {technical.images.total}",
        f"- HTTPS: {'Yes' if technical.security.https else 'No'}",
        f"- Structured Data: {schema}",
        f"- Canonical: {_present(meta.canonical.exists)}",
        f"- Robots.txt: {_present(technical.robots_txt.exists)}",
        f"- Sitemap: {_present(technical.sitemap.exists)}",
        f"- Open Graph: Title={og.title}, Desc={og.description}, Image={og.image}",
        "",
        "Content Analysis:",
        f"- Word Count: {content.word_count}",
        f"- Readability Score: {content.readability_score}/100 ({content.readability_level})",
        f"- Top Keywords: {keywords}",
        "",
        "Links:",
        f"- Internal: {technical.links.internal}",
        f"- External: {technical.links.external}",
        "",
        "Provide your recommendations as a JSON array only, no additional text.",
    ]
    return "\n".join(lines)


def parse_recommendations(content: str) -> list[Recommendation]:
    """
    Parse a model reply into recommendations.

    Accepts a bare JSON array, one fenced in a markdown code block, or an
    object wrapping the array under "recommendations".
    """
    match = FENCED_JSON_PATTERN.search(content)
    raw = (match.group(1) if match else content).strip()

    try:
        data: Any = json.loads(raw)
    except ValueError as exc:
        raise RecommendationGenerationFailed(f"Reply is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("recommendations")
    if not isinstance(data, list) or not data:
        raise RecommendationGenerationFailed("Reply does not contain a recommendation list")

    try:
        return _recommendation_list.validate_python(data)
    except ValidationError as exc:
        raise RecommendationGenerationFailed(f"Reply failed validation: {exc.error_count()} error(s)") from exc


class RecommendationGenerator:
    """Calls the configured chat-completions endpoint for one AuditResult."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.client = client
        self.settings = get_settings()
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def generate(self, result: AuditResult) -> list[Recommendation]:
        try:
            recommendations = await self._request(result)
        except RecommendationGenerationFailed as exc:
            self.logger.warning("Falling back to generic recommendation", url=result.url, reason=str(exc))
            return [FALLBACK_RECOMMENDATION]

        self.logger.info("Recommendations generated", url=result.url, count=len(recommendations))
        return recommendations

    async def _request(self, result: AuditResult) -> list[Recommendation]:
        if not self.settings.OPENAI_API_KEY:
            raise RecommendationGenerationFailed("OPENAI_API_KEY is not configured")

        payload = {
            "model": self.settings.OPENAI_MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(result)},
            ],
        }
        headers = {"Authorization": f"Bearer {self.settings.OPENAI_API_KEY}"}
        url = f"{self.settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions"

        try:
            if self.client is not None:
                response = await self.client.post(
                    url, json=payload, headers=headers, timeout=self.settings.RECOMMENDATION_TIMEOUT
                )
            else:
                async with httpx.AsyncClient(timeout=self.settings.RECOMMENDATION_TIMEOUT) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise RecommendationGenerationFailed(f"Request failed: {exc.__class__.__name__}") from exc

        if not response.is_success:
            raise RecommendationGenerationFailed(f"Collaborator returned HTTP {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise RecommendationGenerationFailed("Unexpected response shape") from exc

        if not content:
            raise RecommendationGenerationFailed("Empty reply")
        return parse_recommendations(content)
