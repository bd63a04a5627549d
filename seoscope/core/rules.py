"""
Scoring rules - the immutable configuration shared by the content analyzer,
the dimension score calculator and the issue detector.

Design:
- Every penalty, threshold and word list lives on one frozen object
- Engines receive the object explicitly; nothing reads module state
- Swap rules in tests or per-tenant by building a new ScoringConfig
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

STOPWORDS: frozenset[str] = frozenset({
    "that", "this", "with", "from", "your", "have", "more", "will", "been",
    "about", "which", "when", "their", "would", "there", "what", "they", "other",
})


class ScoringConfig(BaseModel):
    """Penalty weights and thresholds for technical and content scoring."""

    model_config = ConfigDict(frozen=True)

    # Meta tag length windows (inclusive)
    title_min_length: int = 30
    title_max_length: int = 60
    description_min_length: int = 120
    description_max_length: int = 160

    # Technical penalties
    title_missing_penalty: int = 15
    title_length_penalty: int = 5
    description_missing_penalty: int = 15
    description_length_penalty: int = 5
    h1_missing_penalty: int = 10
    h1_multiple_penalty: int = 5
    image_alt_penalty: int = 2
    image_alt_penalty_cap: int = 10
    structured_data_missing_penalty: int = 5
    open_graph_min_fields: int = 4
    open_graph_field_penalty: int = 2
    https_missing_penalty: int = 10

    # Content penalties
    thin_content_words: int = 300
    thin_content_penalty: int = 20
    short_content_words: int = 600
    short_content_penalty: int = 10
    readability_poor_below: int = 50
    readability_poor_penalty: int = 15
    readability_fair_below: int = 70
    readability_fair_penalty: int = 5

    # Overall blend
    technical_weight: float = 0.6
    content_weight: float = 0.4

    # Issue detection
    images_alt_critical_above: int = 2

    # Content analysis
    min_token_length: int = 4
    top_keyword_limit: int = 10
    target_sentence_length: float = 15.0
    sentence_length_penalty: float = 2.0
    readability_easy_from: int = 80
    readability_moderate_from: int = 60
    stopwords: frozenset[str] = Field(default=STOPWORDS)

    @model_validator(mode="after")
    def validate_windows(self) -> "ScoringConfig":
        if self.title_min_length > self.title_max_length:
            raise ValueError("title_min_length must not exceed title_max_length")
        if self.description_min_length > self.description_max_length:
            raise ValueError("description_min_length must not exceed description_max_length")
        if self.thin_content_words > self.short_content_words:
            raise ValueError("thin_content_words must not exceed short_content_words")
        return self


DEFAULT_SCORING = ScoringConfig()
