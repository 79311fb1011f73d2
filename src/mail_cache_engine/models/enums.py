"""Closed value sets used by enrichment and scoring."""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """Primary message category chosen by the language model."""

    PROMOTIONAL = "Promotional"
    NEWSLETTER = "Newsletter"
    SOCIAL = "Social"
    EVENT = "Event"
    SURVEY = "Survey"
    NOTIFICATION = "Notification"
    CONFIRMATION = "Confirmation"
    BUSINESS = "Business"
    PERSONAL = "Personal"
    FINANCIAL = "Financial"
    OTHER = "Other"

    @classmethod
    def canonical(cls, value: str) -> Category:
        """Match a value case-insensitively against the category names.

        Raises:
            ValueError: If the value is not a known category.
        """
        folded = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == folded:
                return member
        raise ValueError(f"Unknown category: {value!r}")


class Sentiment(str, Enum):
    """Overall tone of a message."""

    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    URGENT = "Urgent"

    @classmethod
    def canonical(cls, value: str) -> Sentiment:
        """Match a value case-insensitively against the sentiment names.

        Raises:
            ValueError: If the value is not a known sentiment.
        """
        folded = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == folded:
                return member
        raise ValueError(f"Unknown sentiment: {value!r}")


class PriorityLabel(str, Enum):
    """Priority tier derived from the composite priority score."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    MINIMAL = "Minimal"

    @classmethod
    def for_score(cls, score: float) -> PriorityLabel:
        if score >= 0.8:
            return cls.CRITICAL
        if score >= 0.6:
            return cls.HIGH
        if score >= 0.4:
            return cls.MEDIUM
        if score >= 0.2:
            return cls.LOW
        return cls.MINIMAL
