"""Parsing and validation of the language model's enrichment reply."""

from __future__ import annotations

import json
import re
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from mail_cache_engine.exceptions import EnrichmentShapeError
from mail_cache_engine.models import Category, Sentiment

_COMMENT_RE = re.compile(r"//.*$")

UnitScore = Annotated[float, Field(ge=0, le=1)]


class EnrichmentResponse(BaseModel):
    """The nine fields every enrichment reply must carry.

    Types are strict: a score sent as a string or a list sent as a single
    string is rejected rather than coerced. Summary length limits are asked
    of the model but not enforced here.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    extended_summary: StrictStr
    short_summary: StrictStr
    action_items: list[StrictStr]
    key_people: list[StrictStr]
    deadlines: list[StrictStr]
    importance_score: UnitScore
    spam_score: UnitScore
    category: StrictStr
    sentiment: StrictStr

    @field_validator("importance_score", "spam_score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        return value

    @field_validator("category")
    @classmethod
    def _canonical_category(cls, value: str) -> str:
        return Category.canonical(value).value

    @field_validator("sentiment")
    @classmethod
    def _canonical_sentiment(cls, value: str) -> str:
        return Sentiment.canonical(value).value


def extract_json_object(raw: str) -> str:
    """Cut the first ``{`` to last ``}`` span and drop ``//`` comment tails and blank lines."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start < 0 or end < start:
        raise EnrichmentShapeError("Could not find JSON object in response")

    lines = (_COMMENT_RE.sub("", line).strip() for line in raw[start : end + 1].split("\n"))
    return "\n".join(line for line in lines if line)


def parse_enrichment_response(raw: str) -> EnrichmentResponse:
    """Parse and strictly validate a raw model reply.

    Raises:
        EnrichmentShapeError: If no JSON object is found, it does not parse, or
            any field is missing, mistyped, out of range or outside its value set.
    """
    cleaned = extract_json_object(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise EnrichmentShapeError(f"Could not parse enrichment response: {exc}") from exc

    if not isinstance(data, dict):
        raise EnrichmentShapeError("Enrichment response is not a JSON object")

    try:
        return EnrichmentResponse.model_validate(data)
    except ValidationError as exc:
        raise EnrichmentShapeError(f"Invalid enrichment response format: {exc}") from exc
