"""
Analytics Domain Services
=========================

Stateless aggregation logic over interaction lists.

Every function here is synchronous and pure: each call builds its own
accumulators and returns fresh derived entities, so passes never share state.
"""

from collections import OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Sequence, Union

from qa_insights.analytics.domain.entities import (
    DailyTrend,
    EmployeeStat,
    EmployeeWeekDetail,
    Insight,
    InsightKind,
    Interaction,
    SLAInteraction,
    TeamOverview,
    TicketSummary,
    TopPerformer,
    WeeklyBucket,
    ensure_utc,
)
from qa_insights.analytics.domain.value_objects import (
    SLA_LIMIT_MINUTES,
    Criterion,
    DurationParser,
    InsightThresholds,
    QualityScores,
    SentimentDistribution,
    compliance_percentage,
    is_valid_score,
    mean_of_valid,
)

TOP_PERFORMER_LIMIT = 5
MAX_INSIGHTS = 5
TREND_DAYS = 7


class EmployeeFilter:
    """Allow-list gate applied before any aggregation."""

    @staticmethod
    def apply(interactions: Iterable[Interaction], allowed_employees: Iterable[str]) -> List[Interaction]:
        allowed = set(allowed_employees)
        return [i for i in interactions if i.employee in allowed]


class SLAEvaluator:
    """
    Classifies employee-to-client response events against the SLA limit.

    The same evaluate() call serves the whole dataset, a single week or a
    single employee; deduplication is scoped to the subset passed in.
    """

    @staticmethod
    def evaluate(interactions: Iterable[Interaction]) -> List[SLAInteraction]:
        """
        Build one SLAInteraction per distinct qualifying response event.

        Only "Employee to Client" responses with both response_by and
        response_time present qualify. Events repeating an already seen
        (ticket_id, response_by, raw response_time) triple are collapsed;
        the first occurrence wins.
        """
        seen = set()
        events: List[SLAInteraction] = []

        for interaction in interactions:
            for response in interaction.response_times:
                if not response.is_employee_to_client:
                    continue
                if not response.response_by or not response.response_time:
                    continue

                minutes = DurationParser.parse(response.response_time)
                event = SLAInteraction(
                    ticket_id=interaction.ticket_id,
                    employee=response.response_by,
                    response_time=minutes,
                    raw_response_time=response.response_time,
                    is_violation=minutes > SLA_LIMIT_MINUTES,
                    created_date=interaction.created_date,
                )
                if event.dedup_key in seen:
                    continue
                seen.add(event.dedup_key)
                events.append(event)

        return events

    @staticmethod
    def violations(events: Iterable[SLAInteraction]) -> List[SLAInteraction]:
        return [e for e in events if e.is_violation]

    @staticmethod
    def count_violations(events: Iterable[SLAInteraction]) -> int:
        return sum(1 for e in events if e.is_violation)

    @staticmethod
    def violations_for(events: Iterable[SLAInteraction], employee: str) -> int:
        """Number of violating events attributed to ``employee``."""
        return sum(1 for e in events if e.is_violation and e.employee == employee)

    @staticmethod
    def compliance_rate(events: Sequence[SLAInteraction]) -> float:
        """Compliant events as a percentage; 100.0 when there are none."""
        return compliance_percentage(len(events), SLAEvaluator.count_violations(events))


class CriterionAccumulator:
    """
    Running (count, sum) per criterion for one employee.

    A value is folded in only when it is valid for that criterion, so each
    mean is taken over its own set of observations.
    """

    def __init__(self):
        self._counts: Dict[Criterion, int] = {c: 0 for c in Criterion}
        self._sums: Dict[Criterion, float] = {c: 0.0 for c in Criterion}

    def add(self, scores: QualityScores) -> None:
        for criterion in Criterion:
            value = scores.get(criterion)
            if is_valid_score(value):
                self._counts[criterion] += 1
                self._sums[criterion] += value

    def count(self, criterion: Criterion) -> int:
        return self._counts[criterion]

    def mean(self, criterion: Criterion) -> float:
        count = self._counts[criterion]
        if count == 0:
            return 0.0
        return self._sums[criterion] / count

    def finalize(self) -> QualityScores:
        return QualityScores(**{c.value: self.mean(c) for c in Criterion})


class ScoreAggregator:
    """Builds per-employee statistics from raw interactions."""

    @staticmethod
    def aggregate(
        interactions: Iterable[Interaction],
        allowed_employees: Iterable[str],
    ) -> List[EmployeeStat]:
        """
        Compute one EmployeeStat per allowed employee seen in the input.

        Output follows the order in which employees first appear. SLA
        violations are counted from the events of the filtered interactions
        whose response_by matches the employee.
        """
        filtered = EmployeeFilter.apply(interactions, allowed_employees)

        stats: "OrderedDict[str, EmployeeStat]" = OrderedDict()
        accumulators: Dict[str, CriterionAccumulator] = {}

        for interaction in filtered:
            stat = stats.get(interaction.employee)
            if stat is None:
                stat = EmployeeStat(employee=interaction.employee)
                stats[interaction.employee] = stat
                accumulators[interaction.employee] = CriterionAccumulator()

            stat.total_tickets += 1
            accumulators[interaction.employee].add(interaction.scores)
            stat.sentiment_distribution.record(interaction.sentiment)

        events = SLAEvaluator.evaluate(filtered)

        for name, stat in stats.items():
            stat.avg_scores = accumulators[name].finalize()
            stat.sla_violations = SLAEvaluator.violations_for(events, name)

        return list(stats.values())


class WeeklyRollup:
    """Re-derives the aggregates over Sunday-aligned calendar weeks (UTC)."""

    @staticmethod
    def week_start_for(value: Union[date, datetime]) -> date:
        """The Sunday on or before ``value``."""
        if isinstance(value, datetime):
            value = ensure_utc(value).date()
        # date.weekday(): Monday == 0, Sunday == 6
        return value - timedelta(days=(value.weekday() + 1) % 7)

    @staticmethod
    def available_weeks(interactions: Iterable[Interaction]) -> List[date]:
        """Distinct week starts present in the data, most recent first."""
        weeks = {WeeklyRollup.week_start_for(i.created_date) for i in interactions}
        return sorted(weeks, reverse=True)

    @staticmethod
    def compute(interactions: Iterable[Interaction], week_start: Union[date, datetime]) -> WeeklyBucket:
        """
        Build the bucket for the week containing ``week_start``.

        Membership is start 00:00 UTC <= created_date < start + 7 days.
        An empty week yields a zeroed bucket.
        """
        start = WeeklyRollup.week_start_for(week_start)
        start_at = datetime.combine(start, time.min, tzinfo=timezone.utc)
        end_at = start_at + timedelta(days=7)

        in_week = [i for i in interactions if start_at <= i.created_date < end_at]
        bucket = WeeklyBucket(week_start=start, week_end=start + timedelta(days=6))
        if not in_week:
            return bucket

        events = SLAEvaluator.evaluate(in_week)

        bucket.total_interactions = len(in_week)
        bucket.unique_tickets = len({i.ticket_id for i in in_week})
        bucket.avg_score = mean_of_valid(i.overall_score for i in in_week)
        bucket.sla_events = len(events)
        bucket.sla_violations = SLAEvaluator.count_violations(events)
        for interaction in in_week:
            bucket.sentiment_distribution.record(interaction.sentiment)

        bucket.employee_details = WeeklyRollup._employee_details(in_week, events)
        bucket.top_performers = [
            TopPerformer(d.employee, d.avg_score, d.total_interactions)
            for d in bucket.employee_details
            if d.avg_score > 0
        ][:TOP_PERFORMER_LIMIT]

        for offset in range(7):
            day = start + timedelta(days=offset)
            on_day = [i for i in in_week if i.created_date.date() == day]
            bucket.daily_tickets[offset] = len({i.ticket_id for i in on_day})
            bucket.daily_scores[offset] = mean_of_valid(i.overall_score for i in on_day)

        return bucket

    @staticmethod
    def _employee_details(
        in_week: List[Interaction], events: List[SLAInteraction]
    ) -> List[EmployeeWeekDetail]:
        grouped: "OrderedDict[str, List[Interaction]]" = OrderedDict()
        for interaction in in_week:
            grouped.setdefault(interaction.employee, []).append(interaction)

        details = []
        for employee, items in grouped.items():
            sentiment = SentimentDistribution()
            for item in items:
                sentiment.record(item.sentiment)
            details.append(
                EmployeeWeekDetail(
                    employee=employee,
                    total_interactions=len(items),
                    ticket_ids=sorted({i.ticket_id for i in items}),
                    avg_score=mean_of_valid(i.overall_score for i in items),
                    sentiment_distribution=sentiment,
                    sla_violations=SLAEvaluator.violations_for(events, employee),
                )
            )

        details.sort(key=lambda d: d.avg_score, reverse=True)
        return details


class TrendCalculator:
    """Short daily series behind the dashboard's headline sparklines."""

    @staticmethod
    def trailing_days(
        interactions: Iterable[Interaction],
        now: datetime,
        days: int = TREND_DAYS,
    ) -> List[DailyTrend]:
        """
        One entry per UTC calendar day, oldest first, ending on the day of ``now``.

        A day without interactions reports zeros. Otherwise compliance is
        taken over that day's deduplicated SLA events (100 when it has none)
        and the score is the mean of positive per-interaction overall scores.
        """
        today = ensure_utc(now).date()
        by_day: Dict[date, List[Interaction]] = {}
        for interaction in interactions:
            by_day.setdefault(interaction.created_date.date(), []).append(interaction)

        series: List[DailyTrend] = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            on_day = by_day.get(day)
            if not on_day:
                series.append(DailyTrend(day=day))
                continue
            series.append(
                DailyTrend(
                    day=day,
                    interactions=len(on_day),
                    sla_compliance=SLAEvaluator.compliance_rate(SLAEvaluator.evaluate(on_day)),
                    avg_score=mean_of_valid(i.overall_score for i in on_day),
                )
            )
        return series


class InteractionSearch:

    @staticmethod
    def search(interactions: Iterable[Interaction], query: str) -> List[Interaction]:
        """Case-insensitive substring match on ticket_id or employee."""
        needle = (query or "").strip().lower()
        if not needle:
            return list(interactions)
        return [
            i for i in interactions
            if needle in i.ticket_id.lower() or needle in i.employee.lower()
        ]


class TicketSummarizer:
    """Groups interactions by ticket and summarizes each group."""

    @staticmethod
    def group_by_ticket(interactions: Iterable[Interaction]) -> Dict[str, List[Interaction]]:
        grouped: "OrderedDict[str, List[Interaction]]" = OrderedDict()
        for interaction in interactions:
            grouped.setdefault(interaction.ticket_id, []).append(interaction)
        return grouped

    @staticmethod
    def summarize_ticket(ticket_id: str, interactions: List[Interaction]) -> TicketSummary:
        ordered = sorted(interactions, key=lambda i: i.created_date)

        employees: List[str] = []
        sentiment = SentimentDistribution()
        for interaction in ordered:
            if interaction.employee not in employees:
                employees.append(interaction.employee)
            sentiment.record(interaction.sentiment)

        subject = next((i.subject for i in ordered if i.subject), None)

        return TicketSummary(
            ticket_id=ticket_id,
            subject=subject,
            interaction_count=len(ordered),
            employees=employees,
            first_created=ordered[0].created_date,
            last_created=ordered[-1].created_date,
            avg_score=mean_of_valid(i.overall_score for i in ordered),
            sentiment_distribution=sentiment,
        )

    @staticmethod
    def summarize(interactions: Iterable[Interaction]) -> List[TicketSummary]:
        """One summary per ticket, the most recently opened ticket first."""
        summaries = [
            TicketSummarizer.summarize_ticket(ticket_id, items)
            for ticket_id, items in TicketSummarizer.group_by_ticket(interactions).items()
        ]
        summaries.sort(key=lambda s: s.first_created, reverse=True)
        return summaries


class TeamOverviewCalculator:

    @staticmethod
    def compute(
        stats: List[EmployeeStat],
        events: List[SLAInteraction],
        interactions: List[Interaction],
    ) -> TeamOverview:
        """
        Team totals from a pass's employee stats, SLA events and interactions.

        The team average and each criterion average are means over the
        employees whose value is above zero.
        """
        overview = TeamOverview(
            total_interactions=len(interactions),
            unique_tickets=len({i.ticket_id for i in interactions}),
            employee_count=len(stats),
            sla_violations=SLAEvaluator.count_violations(events),
            sla_events=len(events),
        )

        scored = [(stat, stat.overall_score) for stat in stats]
        overview.team_avg_score = mean_of_valid(score for _, score in scored)

        ranked = sorted(
            (pair for pair in scored if pair[1] > 0),
            key=lambda pair: pair[1],
            reverse=True,
        )
        overview.top_performers = [
            TopPerformer(stat.employee, score, stat.total_tickets)
            for stat, score in ranked[:TOP_PERFORMER_LIMIT]
        ]

        overview.criterion_averages = {
            c.value: mean_of_valid(stat.avg_scores.get(c) for stat in stats)
            for c in Criterion
        }

        for stat in stats:
            overview.sentiment_distribution.merge(stat.sentiment_distribution)

        return overview


class InsightGenerator:
    """Rule-based team insights, capped at MAX_INSIGHTS and kept in rule order."""

    @staticmethod
    def generate(
        overview: TeamOverview,
        stats: List[EmployeeStat],
        thresholds: InsightThresholds,
    ) -> List[Insight]:
        insights: List[Insight] = []
        team_avg = overview.team_avg_score

        if team_avg >= thresholds.excellent_score:
            insights.append(Insight(
                InsightKind.SUCCESS,
                "Excellent Team Performance",
                f"Team average score of {team_avg:.1f} indicates high-quality customer service.",
                "Continue current training and recognition programs.",
            ))
        elif 0 < team_avg < thresholds.target_score:
            insights.append(Insight(
                InsightKind.CRITICAL,
                "Team Performance Below Target",
                f"Team average score of {team_avg:.1f} needs improvement.",
                "Implement focused training on core criteria and provide additional coaching.",
            ))

        if overview.sla_events and overview.sla_compliance < thresholds.compliance_target:
            insights.append(Insight(
                InsightKind.WARNING,
                "SLA Compliance Issue",
                f"SLA compliance at {overview.sla_compliance:.1f}% is below the "
                f"{thresholds.compliance_target:g}% target.",
                "Review response time processes and consider workload redistribution.",
            ))

        if overview.top_performers:
            top = overview.top_performers[0]
            insights.append(Insight(
                InsightKind.SUCCESS,
                "Top Performer Recognition",
                f"{top.employee} leads with a score of {top.score:.1f}.",
                "Consider having them mentor other team members.",
            ))

        low_performers = [s for s in stats if 0 < s.overall_score < thresholds.target_score]
        if low_performers:
            insights.append(Insight(
                InsightKind.WARNING,
                f"{len(low_performers)} Employee(s) Need Support",
                f"{len(low_performers)} team member(s) scoring below "
                f"{thresholds.target_score:g} need additional support.",
                "Schedule one-on-one coaching sessions and identify specific improvement areas.",
            ))

        violators = [s for s in stats if s.sla_violations > thresholds.violation_threshold]
        if violators:
            insights.append(Insight(
                InsightKind.CRITICAL,
                "Frequent SLA Violations",
                f"{len(violators)} employee(s) have multiple SLA violations.",
                "Review workload distribution and provide time management training.",
            ))

        if overview.total_interactions:
            negative_pct = overview.sentiment_distribution.negative / overview.total_interactions * 100
            if negative_pct > thresholds.negative_sentiment_pct:
                insights.append(Insight(
                    InsightKind.WARNING,
                    "High Negative Sentiment",
                    f"{negative_pct:.1f}% of interactions have negative sentiment.",
                    "Focus on empathy and tone training to improve customer satisfaction.",
                ))

        return insights[:MAX_INSIGHTS]
