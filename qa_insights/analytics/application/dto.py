"""
Analytics Application DTOs
==========================

Data Transfer Objects for the analytics API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from qa_insights.analytics.domain import (
    Criterion,
    DailyTrend,
    EmployeeStat,
    EmployeeWeekDetail,
    Insight,
    Interaction,
    QualityScores,
    ResponseEvent,
    Sentiment,
    SentimentScores,
    SLAInteraction,
    TeamOverview,
    TicketSummary,
    TopPerformer,
    WeeklyBucket,
)


# ========== Type Aliases ==========
SentimentStr = Literal["positive", "negative", "neutral", "mixed"]
InsightKindStr = Literal["success", "warning", "info", "critical"]
ScoreValue = Union[float, str, None]

CRITERION_FIELDS = tuple(c.value for c in Criterion)


def usable_score(value: Any) -> ScoreValue:
    """Keep numbers and strings for coercion; any other type scores as missing."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    return value


def optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


# ========== Record DTOs ==========

class ResponseEventDTO(BaseModel):
    """
    One response log entry as stored with an interaction.

    Fields of the wrong type are read as missing, which keeps the entry out
    of SLA evaluation without rejecting the interaction it belongs to.
    """
    response_by: Optional[str] = Field(None, description="Who responded")
    response_time: Optional[str] = Field(None, description='Elapsed time, e.g. "20h 33m"')
    response_type: Optional[str] = Field(None, description='e.g. "Employee to Client"')

    @field_validator("response_by", "response_type", mode="before")
    @classmethod
    def text_or_missing(cls, v: Any) -> Optional[str]:
        return optional_text(v)

    @field_validator("response_time", mode="before")
    @classmethod
    def stringify_response_time(cls, v: Any) -> Optional[str]:
        """Durations sometimes arrive as bare numbers."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None


class InteractionRecord(BaseModel):
    """
    Raw interaction record as exchanged with the data source.

    Only ticket_id, employee and created_date can get a record rejected.
    Criterion values are accepted as numbers or numeric strings; anything
    else is scored as 0. Unknown sentiment labels are kept out of tallies,
    and response entries that are not objects are skipped.
    """
    model_config = ConfigDict(extra="ignore")

    ticket_id: str = Field(..., min_length=1, description="Ticket the interaction belongs to")
    employee: str = Field(..., min_length=1, description="Employee name")
    created_date: datetime = Field(..., description="ISO 8601 timestamp; naive values are read as UTC")
    subject: Optional[str] = Field(None, description="Ticket subject")
    sentiment: Optional[str] = Field(None, description="positive / negative / neutral / mixed")
    sentiment_scores: Dict[str, ScoreValue] = Field(default_factory=dict)
    response_times: List[ResponseEventDTO] = Field(default_factory=list)

    # Core criteria
    tone_and_trust: ScoreValue = None
    grammar_language: ScoreValue = None
    professionalism_clarity: ScoreValue = None
    non_tech_clarity: ScoreValue = None
    empathy: ScoreValue = None
    responsiveness: ScoreValue = None
    # Contextual criteria
    client_alignment: ScoreValue = None
    proactivity: ScoreValue = None
    ownership_accountability: ScoreValue = None
    enablement: ScoreValue = None
    consistency: ScoreValue = None
    risk_impact: ScoreValue = None

    @field_validator("ticket_id", "employee")
    @classmethod
    def strip_identity(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("sentiment", mode="before")
    @classmethod
    def normalize_sentiment(cls, v: Any) -> Optional[str]:
        parsed = Sentiment.parse(v)
        return parsed.value if parsed else None

    @field_validator(*CRITERION_FIELDS, mode="before")
    @classmethod
    def criterion_or_missing(cls, v: Any) -> ScoreValue:
        return usable_score(v)

    @field_validator("subject", mode="before")
    @classmethod
    def subject_or_missing(cls, v: Any) -> Optional[str]:
        return optional_text(v)

    @field_validator("sentiment_scores", mode="before")
    @classmethod
    def clean_sentiment_scores(cls, v: Any) -> Dict[str, ScoreValue]:
        if not isinstance(v, dict):
            return {}
        return {str(label): usable_score(score) for label, score in v.items()}

    @field_validator("response_times", mode="before")
    @classmethod
    def keep_response_entries(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, (dict, ResponseEventDTO))]

    def to_domain(self) -> Interaction:
        return Interaction(
            ticket_id=self.ticket_id,
            employee=self.employee,
            created_date=self.created_date,
            scores=QualityScores.from_mapping(self.model_dump()),
            sentiment=Sentiment.parse(self.sentiment),
            sentiment_scores=SentimentScores.from_mapping(self.sentiment_scores),
            response_times=[ResponseEvent.from_mapping(r.model_dump()) for r in self.response_times],
            subject=self.subject,
        )

    @classmethod
    def from_domain(cls, interaction: Interaction) -> "InteractionRecord":
        return cls(
            ticket_id=interaction.ticket_id,
            employee=interaction.employee,
            created_date=interaction.created_date,
            subject=interaction.subject,
            sentiment=interaction.sentiment.value if interaction.sentiment else None,
            sentiment_scores=interaction.sentiment_scores.to_dict(),
            response_times=[ResponseEventDTO(**r.to_dict()) for r in interaction.response_times],
            **interaction.scores.to_dict(),
        )


class InteractionIngestRequest(BaseModel):
    """
    Request model for interaction ingestion.

    Records are validated one by one so a malformed record is rejected
    without failing the rest of the batch.
    """
    interactions: List[Dict[str, Any]] = Field(..., description="Raw interaction records")


class IngestResponse(BaseModel):
    created: int = Field(..., description="Records stored")
    failed: int = Field(..., description="Records rejected")
    errors: List[str] = Field(default_factory=list, description="One message per rejected record")


# ========== Response DTOs ==========

class SentimentDistributionResponse(BaseModel):
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    mixed: int = 0


class EmployeeStatResponse(BaseModel):
    """Per-employee aggregate with derived overall score and compliance."""
    employee: str
    total_tickets: int = Field(..., description="Interaction count (not distinct tickets)")
    avg_scores: Dict[str, float]
    sentiment_distribution: SentimentDistributionResponse
    sla_violations: int
    overall_score: float
    sla_compliance: float

    @classmethod
    def from_domain(cls, stat: EmployeeStat) -> "EmployeeStatResponse":
        return cls(**stat.to_dict())


class SLAEventResponse(BaseModel):
    ticket_id: str
    employee: str
    response_time: int = Field(..., description="Parsed minutes")
    raw_response_time: str
    is_violation: bool
    sla_limit: int
    created_date: datetime

    @classmethod
    def from_domain(cls, event: SLAInteraction) -> "SLAEventResponse":
        return cls(**event.to_dict())


class SLAReportResponse(BaseModel):
    events: List[SLAEventResponse]
    total_events: int
    violations: int
    compliance: float = Field(..., description="Compliant events (%); 100 when there are none")


class TopPerformerResponse(BaseModel):
    employee: str
    score: float
    total_interactions: int

    @classmethod
    def from_domain(cls, performer: TopPerformer) -> "TopPerformerResponse":
        return cls(**performer.to_dict())


class EmployeeWeekDetailResponse(BaseModel):
    employee: str
    total_interactions: int
    unique_tickets: int
    ticket_ids: List[str]
    avg_score: float
    sentiment_distribution: SentimentDistributionResponse
    sla_violations: int

    @classmethod
    def from_domain(cls, detail: EmployeeWeekDetail) -> "EmployeeWeekDetailResponse":
        return cls(**detail.to_dict())


class WeeklyBucketResponse(BaseModel):
    """Aggregates for one Sunday-aligned week."""
    week_start: date
    week_end: date
    total_interactions: int
    unique_tickets: int
    avg_score: float
    sla_violations: int
    sla_events: int
    sla_compliance: float
    sentiment_distribution: SentimentDistributionResponse
    top_performers: List[TopPerformerResponse]
    employee_details: List[EmployeeWeekDetailResponse]
    daily_tickets: List[int] = Field(..., min_length=7, max_length=7)
    daily_scores: List[float] = Field(..., min_length=7, max_length=7)

    @classmethod
    def from_domain(cls, bucket: WeeklyBucket) -> "WeeklyBucketResponse":
        return cls(**bucket.to_dict())


class WeeksResponse(BaseModel):
    weeks: List[date] = Field(..., description="Week starts (Sundays), most recent first")


class TicketSummaryResponse(BaseModel):
    ticket_id: str
    subject: Optional[str]
    interaction_count: int
    employees: List[str]
    unique_employees: int
    first_created: datetime
    last_created: datetime
    avg_score: float
    sentiment_distribution: SentimentDistributionResponse

    @classmethod
    def from_domain(cls, summary: TicketSummary) -> "TicketSummaryResponse":
        return cls(**summary.to_dict())


class InteractionResponse(InteractionRecord):
    overall_score: float

    @classmethod
    def from_domain(cls, interaction: Interaction) -> "InteractionResponse":
        record = InteractionRecord.from_domain(interaction)
        return cls(**record.model_dump(), overall_score=interaction.overall_score)


class TicketDetailResponse(BaseModel):
    summary: TicketSummaryResponse
    interactions: List[InteractionResponse] = Field(..., description="Oldest first")


class InsightResponse(BaseModel):
    kind: InsightKindStr
    title: str
    description: str
    action: str

    @classmethod
    def from_domain(cls, insight: Insight) -> "InsightResponse":
        return cls(**insight.to_dict())


class TeamOverviewResponse(BaseModel):
    total_interactions: int
    unique_tickets: int
    employee_count: int
    sla_violations: int
    sla_events: int
    sla_compliance: float
    team_avg_score: float
    top_performers: List[TopPerformerResponse]
    criterion_averages: Dict[str, float]
    sentiment_distribution: SentimentDistributionResponse

    @classmethod
    def from_domain(cls, overview: TeamOverview) -> "TeamOverviewResponse":
        return cls(**overview.to_dict())


class DailyTrendResponse(BaseModel):
    day: date
    interactions: int = Field(..., description="Interactions created that day")
    sla_compliance: float = Field(..., description="Compliant SLA events (%); 0 on a day without interactions")
    avg_score: float

    @classmethod
    def from_domain(cls, trend: DailyTrend) -> "DailyTrendResponse":
        return cls(**trend.to_dict())


class OverviewResponse(BaseModel):
    generated_at: datetime
    overview: TeamOverviewResponse
    insights: List[InsightResponse]
    trend: List[DailyTrendResponse] = Field(..., description="Trailing seven days, oldest first")


class RefreshResponse(BaseModel):
    sequence: int = Field(..., description="Refresh pass number that produced the current snapshot")
    generated_at: datetime
    interactions: int
    employees: int
