"""
Team overview and insight rule tests.

Run: pytest tests/test_insights.py -v
"""

import pytest

from qa_insights.analytics.domain import (
    EmployeeStat,
    InsightGenerator,
    InsightKind,
    InsightThresholds,
    QualityScores,
    ScoreAggregator,
    SentimentDistribution,
    SLAEvaluator,
    TeamOverview,
    TeamOverviewCalculator,
    TopPerformer,
)

from helpers import ALLOWED, core_scores, make_interaction, reply

THRESHOLDS = InsightThresholds()


def stat(name: str, score: float, tickets: int = 1, violations: int = 0) -> EmployeeStat:
    return EmployeeStat(
        employee=name,
        total_tickets=tickets,
        avg_scores=core_scores(score),
        sla_violations=violations,
    )


def titles(insights):
    return [i.title for i in insights]


class TestTeamOverview:

    def test_empty(self):
        overview = TeamOverviewCalculator.compute([], [], [])

        assert overview.total_interactions == 0
        assert overview.team_avg_score == 0.0
        assert overview.sla_compliance == 100.0
        assert overview.top_performers == []

    def test_totals_from_a_pass(self):
        interactions = [
            make_interaction(ticket_id="TCK-1", employee="Sajni V", scores=core_scores(9.0),
                             sentiment="positive", responses=[reply("Sajni V", "1h")]),
            make_interaction(ticket_id="TCK-1", employee="Nithin V P", scores=core_scores(7.0),
                             sentiment="negative", responses=[reply("Nithin V P", "5m")]),
            make_interaction(ticket_id="TCK-2", employee="Abin Joseph", scores=core_scores(0.0)),
        ]
        stats = ScoreAggregator.aggregate(interactions, ALLOWED)
        events = SLAEvaluator.evaluate(interactions)

        overview = TeamOverviewCalculator.compute(stats, events, interactions)

        assert overview.total_interactions == 3
        assert overview.unique_tickets == 2
        assert overview.employee_count == 3
        assert overview.sla_events == 2
        assert overview.sla_violations == 1
        assert overview.sla_compliance == pytest.approx(50.0)
        assert overview.team_avg_score == pytest.approx(8.0)
        assert [p.employee for p in overview.top_performers] == ["Sajni V", "Nithin V P"]
        assert overview.criterion_averages["empathy"] == pytest.approx(8.0)
        assert overview.criterion_averages["proactivity"] == 0.0
        assert overview.sentiment_distribution.total == 2


class TestInsightGenerator:

    def test_no_data_yields_no_insights(self):
        assert InsightGenerator.generate(TeamOverview(), [], THRESHOLDS) == []

    def test_excellent_team(self):
        stats = [stat("Sajni V", 9.0)]
        overview = TeamOverviewCalculator.compute(stats, [], [make_interaction()])

        insights = InsightGenerator.generate(overview, stats, THRESHOLDS)

        assert insights[0].kind is InsightKind.SUCCESS
        assert insights[0].title == "Excellent Team Performance"
        assert "Top Performer Recognition" in titles(insights)

    def test_below_target_team_and_low_performers(self):
        stats = [stat("Sajni V", 6.0), stat("Nithin V P", 7.0)]
        overview = TeamOverviewCalculator.compute(stats, [], [make_interaction()])

        insights = InsightGenerator.generate(overview, stats, THRESHOLDS)

        assert insights[0].kind is InsightKind.CRITICAL
        assert insights[0].title == "Team Performance Below Target"
        assert "2 Employee(s) Need Support" in titles(insights)

    def test_zero_average_is_not_below_target(self):
        overview = TeamOverview(total_interactions=1)
        insights = InsightGenerator.generate(overview, [stat("Sajni V", 0.0)], THRESHOLDS)
        assert "Team Performance Below Target" not in titles(insights)

    def test_sla_compliance_warning_needs_events(self):
        overview = TeamOverview(sla_events=10, sla_violations=2)
        insights = InsightGenerator.generate(overview, [], THRESHOLDS)

        assert titles(insights) == ["SLA Compliance Issue"]
        assert "80.0%" in insights[0].description

        assert InsightGenerator.generate(TeamOverview(sla_events=0), [], THRESHOLDS) == []

    def test_frequent_violators(self):
        stats = [stat("Sajni V", 8.0, violations=3), stat("Nithin V P", 8.0, violations=2)]
        insights = InsightGenerator.generate(TeamOverview(), stats, THRESHOLDS)

        violators = [i for i in insights if i.title == "Frequent SLA Violations"]
        assert len(violators) == 1
        assert violators[0].kind is InsightKind.CRITICAL
        assert violators[0].description.startswith("1 employee(s)")

    def test_negative_sentiment_share(self):
        overview = TeamOverview(
            total_interactions=10,
            sentiment_distribution=SentimentDistribution(negative=2),
        )
        assert "High Negative Sentiment" in titles(
            InsightGenerator.generate(overview, [], THRESHOLDS)
        )

        overview.sentiment_distribution = SentimentDistribution(negative=1)
        assert InsightGenerator.generate(overview, [], THRESHOLDS) == []

    def test_custom_thresholds(self):
        thresholds = InsightThresholds(target_score=9.0, excellent_score=9.5)
        stats = [stat("Sajni V", 8.8)]
        overview = TeamOverviewCalculator.compute(stats, [], [make_interaction()])

        assert "Team Performance Below Target" in titles(
            InsightGenerator.generate(overview, stats, thresholds)
        )

    def test_capped_in_rule_order(self):
        stats = [stat("Sajni V", 6.0, violations=5)]
        overview = TeamOverview(
            total_interactions=4,
            sla_events=4,
            sla_violations=3,
            team_avg_score=6.0,
            top_performers=[TopPerformer("Sajni V", 6.0, 4)],
            sentiment_distribution=SentimentDistribution(negative=3),
        )

        insights = InsightGenerator.generate(overview, stats, THRESHOLDS)

        assert titles(insights) == [
            "Team Performance Below Target",
            "SLA Compliance Issue",
            "Top Performer Recognition",
            "1 Employee(s) Need Support",
            "Frequent SLA Violations",
        ]

    def test_to_dict(self):
        insight = InsightGenerator.generate(TeamOverview(sla_events=1, sla_violations=1), [], THRESHOLDS)[0]
        assert insight.to_dict()["kind"] == "warning"


class TestThresholds:

    def test_defaults(self):
        assert THRESHOLDS.target_score == 7.5
        assert THRESHOLDS.excellent_score == 8.5
        assert THRESHOLDS.compliance_target == 90

    def test_excellent_must_not_be_below_target(self):
        with pytest.raises(ValueError):
            InsightThresholds(target_score=8.0, excellent_score=7.0)

    def test_quality_scores_default_to_zero(self):
        assert QualityScores().empathy == 0.0
