"""
Per-employee aggregation tests.

Run: pytest tests/test_score_aggregator.py -v
"""

import pytest

from qa_insights.analytics.domain import (
    Criterion,
    CriterionAccumulator,
    EmployeeFilter,
    QualityScores,
    ScoreAggregator,
)

from helpers import ALLOWED, core_scores, make_interaction, reply


class TestEmployeeFilter:

    def test_drops_unlisted_employees(self):
        kept = EmployeeFilter.apply(
            [make_interaction(employee="Sajni V"), make_interaction(employee="Intern")],
            ALLOWED,
        )
        assert [i.employee for i in kept] == ["Sajni V"]

    def test_empty_allow_list_admits_nobody(self):
        assert EmployeeFilter.apply([make_interaction()], []) == []


class TestCriterionAccumulator:

    def test_counts_only_valid_values(self):
        acc = CriterionAccumulator()
        acc.add(QualityScores(empathy=8.0))
        acc.add(QualityScores(empathy=0.0))
        acc.add(QualityScores(empathy=float("nan")))
        acc.add(QualityScores(empathy=6.0))

        assert acc.count(Criterion.EMPATHY) == 2
        assert acc.mean(Criterion.EMPATHY) == pytest.approx(7.0)
        assert acc.mean(Criterion.PROACTIVITY) == 0.0

    def test_finalize_returns_quality_scores(self):
        acc = CriterionAccumulator()
        acc.add(core_scores(9.0))
        result = acc.finalize()
        assert result.tone_and_trust == pytest.approx(9.0)
        assert result.risk_impact == 0.0


class TestScoreAggregator:

    def test_empty_input(self):
        assert ScoreAggregator.aggregate([], ALLOWED) == []

    def test_total_tickets_counts_interactions(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(ticket_id="TCK-1"),
                make_interaction(ticket_id="TCK-1"),
                make_interaction(ticket_id="TCK-2"),
            ],
            ALLOWED,
        )
        assert stats[0].total_tickets == 3

    def test_unlisted_employees_are_excluded(self):
        stats = ScoreAggregator.aggregate(
            [make_interaction(employee="Intern"), make_interaction(employee="Sajni V")],
            ALLOWED,
        )
        assert [s.employee for s in stats] == ["Sajni V"]

    def test_output_follows_first_appearance(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(employee="Nithin V P"),
                make_interaction(employee="Sajni V"),
                make_interaction(employee="Nithin V P"),
            ],
            ALLOWED,
        )
        assert [s.employee for s in stats] == ["Nithin V P", "Sajni V"]

    def test_each_criterion_averages_its_own_observations(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(scores=core_scores(8.0, proactivity=6.0)),
                make_interaction(scores=core_scores(6.0)),
                make_interaction(scores=core_scores(0.0, proactivity=9.0)),
            ],
            ALLOWED,
        )

        avg = stats[0].avg_scores
        assert avg.empathy == pytest.approx(7.0)
        assert avg.proactivity == pytest.approx(7.5)
        assert avg.enablement == 0.0

    def test_nan_and_garbage_values_do_not_poison_means(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(scores=QualityScores.from_mapping({"empathy": "n/a"})),
                make_interaction(scores=QualityScores(empathy=float("nan"))),
                make_interaction(scores=QualityScores(empathy=9.0)),
            ],
            ALLOWED,
        )
        assert stats[0].avg_scores.empathy == pytest.approx(9.0)

    def test_sentiment_tally_drops_unknown_labels(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(sentiment="Positive"),
                make_interaction(sentiment="negative"),
                make_interaction(sentiment="POSITIVE"),
                make_interaction(sentiment="furious"),
            ],
            ALLOWED,
        )

        dist = stats[0].sentiment_distribution
        assert dist.to_dict() == {"positive": 2, "negative": 1, "neutral": 0, "mixed": 0}
        assert dist.total == 3
        assert stats[0].total_tickets == 4

    def test_violations_matched_by_responder(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(employee="Sajni V", responses=[
                    reply("Sajni V", "45m"),
                    reply("Nithin V P", "2h"),
                ]),
                make_interaction(employee="Nithin V P", ticket_id="TCK-2", responses=[
                    reply("Nithin V P", "10m"),
                ]),
            ],
            ALLOWED,
        )

        by_name = {s.employee: s for s in stats}
        assert by_name["Sajni V"].sla_violations == 1
        assert by_name["Nithin V P"].sla_violations == 1

    def test_duplicate_events_counted_once(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(responses=[reply("Sajni V", "45m")]),
                make_interaction(responses=[reply("Sajni V", "45m")]),
            ],
            ALLOWED,
        )
        assert stats[0].sla_violations == 1

    def test_events_on_unlisted_interactions_are_ignored(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(employee="Intern", responses=[reply("Sajni V", "3h")]),
                make_interaction(employee="Sajni V"),
            ],
            ALLOWED,
        )
        assert stats[0].sla_violations == 0

    def test_derived_overall_score_and_compliance(self):
        stats = ScoreAggregator.aggregate(
            [
                make_interaction(ticket_id="TCK-1", scores=core_scores(8.0), responses=[reply("Sajni V", "1h")]),
                make_interaction(ticket_id="TCK-2", scores=core_scores(8.0)),
            ],
            ALLOWED,
        )

        stat = stats[0]
        assert stat.overall_score == pytest.approx(8.0)
        assert stat.sla_compliance == pytest.approx(50.0)
        assert stat.to_dict()["overall_score"] == pytest.approx(8.0)

    def test_passes_are_independent(self):
        interactions = [make_interaction(scores=core_scores(8.0))]
        first = ScoreAggregator.aggregate(interactions, ALLOWED)
        second = ScoreAggregator.aggregate(interactions, ALLOWED)

        assert first[0] is not second[0]
        assert first[0].total_tickets == second[0].total_tickets == 1
