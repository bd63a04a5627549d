"""
Content Analyzer Engine

Analyzes the visible text of a page:
- Word count (tokens longer than three characters)
- Top keywords with density, stopwords excluded
- Readability from average sentence length
"""

from __future__ import annotations

import re
from collections import Counter

import structlog

from seoscope.core.markup import visible_text
from seoscope.core.rules import DEFAULT_SCORING, ScoringConfig
from seoscope.engines.base import AuditEngine, ContentFindings, KeywordStat

logger = structlog.get_logger(__name__)

SENTENCE_SPLIT = re.compile(r"[.!?]+")
KEYWORD_PATTERN = re.compile(r"^[a-z]+$")


class ContentAnalyzer(AuditEngine):

    ENGINE_NAME = "content"

    def __init__(self, config: ScoringConfig = DEFAULT_SCORING):
        super().__init__()
        self.config = config

    def run(self, html: str | None) -> ContentFindings:
        text = visible_text(html)
        words = [w for w in text.lower().split() if len(w) >= self.config.min_token_length]
        word_count = len(words)

        readability = self.readability(text, word_count)
        return ContentFindings(
            word_count=word_count,
            top_keywords=self.top_keywords(words),
            readability_score=readability,
            readability_level=self.readability_level(readability),
        )

    def top_keywords(self, words: list[str]) -> list[KeywordStat]:
        """
        Most frequent non-stopwords; density is relative to every counted word.
        Tokens carrying punctuation or digits ("relief.", "covid-19") are not keywords.
        """
        if not words:
            return []

        frequency: Counter[str] = Counter()
        for word in words:
            if word in self.config.stopwords or not KEYWORD_PATTERN.match(word):
                continue
            frequency[word] += 1

        return [
            KeywordStat(word=word, count=count, density=round(count / len(words) * 100, 2))
            for word, count in frequency.most_common(self.config.top_keyword_limit)
        ]

    def readability(self, text: str, word_count: int) -> int:
        sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
        avg_sentence_length = word_count / max(len(sentences), 1)
        raw = 100 - (avg_sentence_length - self.config.target_sentence_length) * self.config.sentence_length_penalty
        return self.clamp_score(raw)

    def readability_level(self, score: int) -> str:
        if score >= self.config.readability_easy_from:
            return "Easy"
        if score >= self.config.readability_moderate_from:
            return "Moderate"
        return "Difficult"
