"""
Analytics Value Objects
=======================

Immutable value objects and pure calculators for the QA analytics domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

import math
import re
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


SLA_LIMIT_MINUTES = 30
EMPLOYEE_TO_CLIENT = "Employee to Client"

CORE_WEIGHT = 0.7
CONTEXTUAL_WEIGHT = 0.3


class CriterionTier(str, Enum):
    """Scoring tiers. CORE is always expected; CONTEXTUAL may be absent."""
    CORE = "core"
    CONTEXTUAL = "contextual"


class Criterion(str, Enum):
    """The twelve QA criteria scored per interaction."""
    TONE_AND_TRUST = "tone_and_trust"
    GRAMMAR_LANGUAGE = "grammar_language"
    PROFESSIONALISM_CLARITY = "professionalism_clarity"
    NON_TECH_CLARITY = "non_tech_clarity"
    EMPATHY = "empathy"
    RESPONSIVENESS = "responsiveness"
    CLIENT_ALIGNMENT = "client_alignment"
    PROACTIVITY = "proactivity"
    OWNERSHIP_ACCOUNTABILITY = "ownership_accountability"
    ENABLEMENT = "enablement"
    CONSISTENCY = "consistency"
    RISK_IMPACT = "risk_impact"


CRITERIA: Tuple[Tuple[Criterion, CriterionTier], ...] = (
    (Criterion.TONE_AND_TRUST, CriterionTier.CORE),
    (Criterion.GRAMMAR_LANGUAGE, CriterionTier.CORE),
    (Criterion.PROFESSIONALISM_CLARITY, CriterionTier.CORE),
    (Criterion.NON_TECH_CLARITY, CriterionTier.CORE),
    (Criterion.EMPATHY, CriterionTier.CORE),
    (Criterion.RESPONSIVENESS, CriterionTier.CORE),
    (Criterion.CLIENT_ALIGNMENT, CriterionTier.CONTEXTUAL),
    (Criterion.PROACTIVITY, CriterionTier.CONTEXTUAL),
    (Criterion.OWNERSHIP_ACCOUNTABILITY, CriterionTier.CONTEXTUAL),
    (Criterion.ENABLEMENT, CriterionTier.CONTEXTUAL),
    (Criterion.CONSISTENCY, CriterionTier.CONTEXTUAL),
    (Criterion.RISK_IMPACT, CriterionTier.CONTEXTUAL),
)

CORE_CRITERIA: Tuple[Criterion, ...] = tuple(
    c for c, tier in CRITERIA if tier is CriterionTier.CORE
)
CONTEXTUAL_CRITERIA: Tuple[Criterion, ...] = tuple(
    c for c, tier in CRITERIA if tier is CriterionTier.CONTEXTUAL
)


class Sentiment(str, Enum):
    """Sentiment labels assigned by the QA review."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: Any) -> Optional["Sentiment"]:
        """Case-insensitive lookup. Unknown or missing labels give None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


def coerce_score(value: Any) -> float:
    """
    Coerce a raw criterion value to a float.

    Numbers are kept, numeric strings are parsed, anything else is 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def is_valid_score(value: float) -> bool:
    """A score counts toward a mean only if it is a real number above zero."""
    return not math.isnan(value) and value > 0


def mean_of_valid(values) -> float:
    """Mean of the valid scores in ``values``; 0.0 when none qualify."""
    valid = [v for v in values if is_valid_score(v)]
    if not valid:
        return 0.0
    return sum(valid) / len(valid)


def compliance_percentage(total: int, violations: int) -> float:
    """Share of compliant items as a percentage in [0, 100]; 100 when total is 0."""
    if total <= 0:
        return 100.0
    return max(0.0, min(100.0, (total - violations) / total * 100))


@dataclass(frozen=True)
class QualityScores:
    """The twelve criterion values for one interaction or one employee average."""
    tone_and_trust: float = 0.0
    grammar_language: float = 0.0
    professionalism_clarity: float = 0.0
    non_tech_clarity: float = 0.0
    empathy: float = 0.0
    responsiveness: float = 0.0
    client_alignment: float = 0.0
    proactivity: float = 0.0
    ownership_accountability: float = 0.0
    enablement: float = 0.0
    consistency: float = 0.0
    risk_impact: float = 0.0

    def get(self, criterion: Criterion) -> float:
        return getattr(self, criterion.value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "QualityScores":
        """Build from a raw record, coercing each criterion."""
        return cls(**{c.value: coerce_score(data.get(c.value)) for c in Criterion})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class SentimentScores:
    """Informational per-label probabilities. Not required to sum to 1."""
    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.0
    mixed: float = 0.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SentimentScores":
        data = data or {}
        return cls(**{f.name: coerce_score(data.get(f.name)) for f in fields(cls)})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ResponseEvent:
    """One logged response on a ticket. Any field may be missing."""
    response_by: Optional[str] = None
    response_time: Optional[str] = None
    response_type: Optional[str] = None

    @property
    def is_employee_to_client(self) -> bool:
        return self.response_type == EMPLOYEE_TO_CLIENT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ResponseEvent":
        def text(key: str) -> Optional[str]:
            value = data.get(key)
            return value if isinstance(value, str) and value != "" else None

        return cls(
            response_by=text("response_by"),
            response_time=text("response_time"),
            response_type=text("response_type"),
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


@dataclass
class SentimentDistribution:
    """Counts of the four sentiment labels."""
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    mixed: int = 0

    def record(self, sentiment: Optional[Sentiment]) -> None:
        """Tally one label. Missing labels are dropped."""
        if sentiment is None:
            return
        setattr(self, sentiment.value, getattr(self, sentiment.value) + 1)

    def merge(self, other: "SentimentDistribution") -> None:
        for label in Sentiment:
            setattr(self, label.value, getattr(self, label.value) + getattr(other, label.value))

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral + self.mixed

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class InsightThresholds(BaseModel):
    """Thresholds for the rule-based team insights."""
    target_score: float = Field(default=7.5, ge=0, le=10, description="Minimum acceptable overall score")
    excellent_score: float = Field(default=8.5, ge=0, le=10, description="Team average counted as excellent")
    compliance_target: float = Field(default=90.0, ge=0, le=100, description="SLA compliance target (%)")
    violation_threshold: int = Field(default=2, ge=0, description="Violations above which an employee is flagged")
    negative_sentiment_pct: float = Field(default=15.0, ge=0, le=100, description="Negative sentiment alert level (%)")

    @field_validator("excellent_score")
    @classmethod
    def validate_excellent_score(cls, v: float, info) -> float:
        """Ensure the excellent band sits at or above the target."""
        if "target_score" in info.data and v < info.data["target_score"]:
            raise ValueError("excellent_score cannot be below target_score")
        return v


class ScoringConfig(BaseModel):
    """
    Scoring configuration loaded from YAML.

    The allow-list gates every aggregation: interactions by employees not
    listed here are ignored. An empty list admits nobody.
    """
    allowed_employees: List[str] = Field(
        default_factory=list,
        description="Employees included in analytics"
    )
    insight_thresholds: InsightThresholds = Field(default_factory=InsightThresholds)

    @field_validator("allowed_employees")
    @classmethod
    def validate_allowed_employees(cls, v: List[str]) -> List[str]:
        """Strip names, drop blanks and duplicates, keep order."""
        cleaned: List[str] = []
        for name in v:
            name = str(name).strip()
            if name and name not in cleaned:
                cleaned.append(name)
        return cleaned


class DurationParser:
    """
    Converts free-text elapsed times ("20h 33m", "45m", "2h") to minutes.

    Never raises: unparseable input yields 0.
    """

    _HOURS = re.compile(r"(\d+)h")
    _MINUTES = re.compile(r"(\d+)m")
    _NUMBER = re.compile(r"(\d+)")

    @staticmethod
    def parse(text: Any) -> int:
        """
        Parse a duration string into whole minutes.

        Args:
            text: Raw duration text

        Returns:
            Minutes; 0 for non-strings, empty strings or text with no digits
        """
        if not isinstance(text, str) or not text:
            return 0

        value = text.lower().strip()
        total = 0

        hours = DurationParser._HOURS.search(value)
        if hours:
            total += int(hours.group(1)) * 60

        minutes = DurationParser._MINUTES.search(value)
        if minutes:
            total += int(minutes.group(1))

        # Bare number, read as minutes
        if total == 0:
            number = DurationParser._NUMBER.search(value)
            if number:
                total = int(number.group(1))

        return total


class OverallScoreCalculator:
    """Collapses the two criterion tiers into one weighted scalar."""

    @staticmethod
    def core_average(scores: QualityScores) -> float:
        return mean_of_valid(scores.get(c) for c in CORE_CRITERIA)

    @staticmethod
    def contextual_average(scores: QualityScores) -> Optional[float]:
        """Mean of the valid contextual values, or None if none qualify."""
        valid = [v for v in (scores.get(c) for c in CONTEXTUAL_CRITERIA) if is_valid_score(v)]
        if not valid:
            return None
        return sum(valid) / len(valid)

    @staticmethod
    def combine(scores: QualityScores) -> float:
        """
        Weighted overall score.

        0.7 x core mean + 0.3 x contextual mean when any contextual value is
        valid; otherwise the core mean alone.
        """
        core = OverallScoreCalculator.core_average(scores)
        contextual = OverallScoreCalculator.contextual_average(scores)
        if contextual is None:
            return core
        return CORE_WEIGHT * core + CONTEXTUAL_WEIGHT * contextual
