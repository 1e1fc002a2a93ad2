"""
Resolution Domain Entities
==========================

Domain entities for the complaint resolution module.

Contains pure Python business objects for classification, similarity
retrieval and the answer decision, plus the total parser that turns a raw
model response into an in-set classification.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Tuple

from feedback_resolver.config import (
    VALID_NORMALIZED_KEYS,
    VALID_SENTIMENTS,
    DEFAULT_NORMALIZED_KEY,
    DEFAULT_SENTIMENT,
)


def coerce_normalized_key(value: object) -> Optional[str]:
    """Return the canonical category for value, or None if out of set."""
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in VALID_NORMALIZED_KEYS else None


def coerce_sentiment(value: object) -> Optional[str]:
    """Return the canonical sentiment for value, or None if out of set."""
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in VALID_SENTIMENTS else None


@dataclass
class ClassificationResult:
    """
    Result of complaint classification.

    normalized_key and sentiment are always in-set; source records which
    parsing stage produced them (json, pattern or default).
    """
    normalized_key: str
    sentiment: str
    source: str
    model_used: str = "unknown"
    latency_ms: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.normalized_key not in VALID_NORMALIZED_KEYS:
            raise ValueError(f"Invalid normalized_key: {self.normalized_key}")
        if self.sentiment not in VALID_SENTIMENTS:
            raise ValueError(f"Invalid sentiment: {self.sentiment}")

    @classmethod
    def default(cls, model_used: str = "unknown", latency_ms: int = 0) -> "ClassificationResult":
        return cls(
            normalized_key=DEFAULT_NORMALIZED_KEY,
            sentiment=DEFAULT_SENTIMENT,
            source="default",
            model_used=model_used,
            latency_ms=latency_ms,
        )


@dataclass
class EmbeddingVector:
    """
    Embedding of a complaint's text.

    An empty vector is the sentinel for "no embedding available".
    """
    values: List[float] = field(default_factory=list)
    model: str = ""

    @property
    def is_empty(self) -> bool:
        return len(self.values) == 0

    @property
    def dimension(self) -> int:
        return len(self.values)

    @classmethod
    def empty(cls) -> "EmbeddingVector":
        return cls()


@dataclass
class SimilarityMatch:
    """A previously processed complaint close to the current one."""
    id: str
    score: float
    metadata: dict = field(default_factory=dict)

    @property
    def normalized_key(self) -> Optional[str]:
        return self.metadata.get("normalized_key")

    @property
    def sentiment(self) -> Optional[str]:
        return self.metadata.get("sentiment")

    @property
    def answer_type(self) -> Optional[str]:
        return self.metadata.get("answer_type")


@dataclass
class ComplaintRecord:
    """A processed complaint. Immutable once stored."""
    id: Optional[int]
    customer_email: str
    text: str
    sentiment: str
    normalized_key: str
    answer_type: str
    answered: bool = True
    created_at: Optional[datetime] = None


@dataclass
class SolutionRecord:
    """Curated reply for a category."""
    id: Optional[int]
    normalized_key: str
    solution_text: str

    @property
    def is_usable(self) -> bool:
        return bool(self.solution_text and self.solution_text.strip())


@dataclass
class ResolutionDecision:
    """
    Answer chosen by the resolution policy.

    solution_key is the category whose solution was used, which for a
    similar match is the matched complaint's category.
    """
    answer_type: str
    email_response: str
    tier: str
    solution_key: Optional[str] = None


@dataclass
class ResolutionOutcome:
    """Everything the pipeline reports back for one complaint."""
    complaint_id: int
    normalized_key: str
    sentiment: str
    answer_type: str
    email_response: str
    email_sent: bool
    resolution_tier: str
    similar_matches: List[SimilarityMatch] = field(default_factory=list)
    embedding_stored: bool = False

    def similar_match_summaries(self) -> List[dict]:
        """Score, category and sentiment of each match; ids are not exposed."""
        return [
            {
                "score": match.score,
                "category": match.normalized_key,
                "sentiment": match.sentiment,
            }
            for match in self.similar_matches
        ]


def build_embedding_id(complaint_id: int, created_at: datetime) -> str:
    """Derive the vector id for a stored complaint."""
    return f"complaint-{complaint_id}-{int(created_at.timestamp() * 1000)}"


def build_embedding_metadata(
    record: ComplaintRecord,
    created_at: datetime,
    snippet_length: int = 500
) -> dict:
    """Metadata stored with a complaint's vector."""
    return {
        "text_snippet": record.text[:snippet_length],
        "customer_email": record.customer_email,
        "normalized_key": record.normalized_key,
        "sentiment": record.sentiment,
        "answer_type": record.answer_type,
        "timestamp": created_at.isoformat(),
    }


class ClassificationPromptBuilder:
    """
    Builds prompts for complaint classification.

    Instructions go in the system prompt; the user message carries only
    the customer's text.
    """

    SYSTEM_PROMPT = """Analyze the following customer support message and provide:
1. Category: one of "billing", "technical", or "general"
2. Sentiment: one of "positive", "neutral", or "negative"

Respond in JSON format:
{
  "normalized_key": "billing|technical|general",
  "sentiment": "positive|neutral|negative"
}"""

    @classmethod
    def build_prompt(cls, text: str) -> str:
        """Build the user message from complaint text."""
        return f'Message: "{text}"\n\nRespond with JSON only.'

    @classmethod
    def get_system_prompt(cls) -> str:
        return cls.SYSTEM_PROMPT

    @classmethod
    def build_messages(cls, text: str) -> List[dict]:
        return [
            {"role": "system", "content": cls.get_system_prompt()},
            {"role": "user", "content": cls.build_prompt(text)},
        ]


class ClassificationResponseParser:
    """
    Total parser for classification responses.

    Stages, per field, until a value is found:
    1. the first balanced {...} object parsed as JSON
    2. key/value patterns matched against the raw text
    3. defaults (general / neutral)
    """

    KEY_PATTERN = re.compile(r'normalized_key["\s:]+(billing|technical|general)', re.IGNORECASE)
    SENTIMENT_PATTERN = re.compile(r'sentiment["\s:]+(positive|neutral|negative)', re.IGNORECASE)

    @staticmethod
    def extract_json_object(text: str) -> Optional[str]:
        """Return the first balanced {...} substring, ignoring braces inside strings."""
        start = text.find("{")
        if start < 0:
            return None

        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        return None

    @classmethod
    def _from_json(cls, text: str) -> Tuple[Optional[str], Optional[str]]:
        candidate = cls.extract_json_object(text)
        if candidate is None:
            return None, None
        try:
            parsed = json.loads(candidate)
        except ValueError:
            return None, None
        if not isinstance(parsed, dict):
            return None, None
        return (
            coerce_normalized_key(parsed.get("normalized_key")),
            coerce_sentiment(parsed.get("sentiment")),
        )

    @classmethod
    def _from_patterns(cls, text: str) -> Tuple[Optional[str], Optional[str]]:
        key_match = cls.KEY_PATTERN.search(text)
        sentiment_match = cls.SENTIMENT_PATTERN.search(text)
        return (
            key_match.group(1).lower() if key_match else None,
            sentiment_match.group(1).lower() if sentiment_match else None,
        )

    @classmethod
    def parse(cls, text: Optional[str]) -> Tuple[str, str, str]:
        """
        Parse a raw model response.

        Returns:
            (normalized_key, sentiment, source); never raises
        """
        if not text or not isinstance(text, str):
            return DEFAULT_NORMALIZED_KEY, DEFAULT_SENTIMENT, "default"

        normalized_key, sentiment = cls._from_json(text)
        source = "json" if (normalized_key or sentiment) else None

        if normalized_key is None or sentiment is None:
            pattern_key, pattern_sentiment = cls._from_patterns(text)
            if normalized_key is None and pattern_key:
                normalized_key = pattern_key
                source = source or "pattern"
            if sentiment is None and pattern_sentiment:
                sentiment = pattern_sentiment
                source = source or "pattern"

        return (
            normalized_key or DEFAULT_NORMALIZED_KEY,
            sentiment or DEFAULT_SENTIMENT,
            source or "default",
        )


def stock_reply(template: str, normalized_key: str) -> str:
    """Templated reply used when no solution applies; other braces are left as written."""
    return template.replace("{normalized_key}", normalized_key)
