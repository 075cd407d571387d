"""
Interaction search and ticket summary tests.

Run: pytest tests/test_search_and_tickets.py -v
"""

import pytest

from qa_insights.analytics.domain import InteractionSearch, TicketSummarizer

from helpers import at, core_scores, make_interaction


@pytest.fixture
def interactions():
    return [
        make_interaction(ticket_id="TCK-100", employee="Sajni V", created="2024-01-15T10:00:00+00:00"),
        make_interaction(ticket_id="TCK-200", employee="Nithin V P", created="2024-01-16T10:00:00+00:00"),
        make_interaction(ticket_id="TCK-100", employee="Abin Joseph", created="2024-01-14T09:00:00+00:00"),
    ]


class TestInteractionSearch:

    def test_matches_ticket_id_case_insensitively(self, interactions):
        found = InteractionSearch.search(interactions, "tck-1")
        assert {i.employee for i in found} == {"Sajni V", "Abin Joseph"}

    def test_matches_employee_substring(self, interactions):
        found = InteractionSearch.search(interactions, "NITHIN")
        assert [i.ticket_id for i in found] == ["TCK-200"]

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_returns_everything(self, interactions, query):
        assert len(InteractionSearch.search(interactions, query)) == 3

    def test_no_match(self, interactions):
        assert InteractionSearch.search(interactions, "zzz") == []


class TestTicketSummarizer:

    def test_groups_preserve_first_appearance(self, interactions):
        groups = TicketSummarizer.group_by_ticket(interactions)
        assert list(groups) == ["TCK-100", "TCK-200"]
        assert len(groups["TCK-100"]) == 2

    def test_summary_is_chronological(self, interactions):
        summary = TicketSummarizer.summarize_ticket(
            "TCK-100", [i for i in interactions if i.ticket_id == "TCK-100"]
        )

        assert summary.interaction_count == 2
        assert summary.employees == ["Abin Joseph", "Sajni V"]
        assert summary.unique_employees == 2
        assert summary.first_created == at("2024-01-14T09:00:00")
        assert summary.last_created == at("2024-01-15T10:00:00")

    def test_subject_is_first_non_empty(self):
        summary = TicketSummarizer.summarize_ticket("TCK-1", [
            make_interaction(created="2024-01-15T10:00:00+00:00", subject=""),
            make_interaction(created="2024-01-15T11:00:00+00:00", subject="Login broken"),
            make_interaction(created="2024-01-15T12:00:00+00:00", subject="Re: Login broken"),
        ])
        assert summary.subject == "Login broken"

    def test_average_and_sentiment(self):
        summary = TicketSummarizer.summarize_ticket("TCK-1", [
            make_interaction(scores=core_scores(9.0), sentiment="positive"),
            make_interaction(scores=core_scores(7.0), sentiment="mixed"),
            make_interaction(scores=core_scores(0.0)),
        ])

        assert summary.avg_score == pytest.approx(8.0)
        assert summary.sentiment_distribution.positive == 1
        assert summary.sentiment_distribution.mixed == 1

    def test_summaries_newest_ticket_first(self, interactions):
        summaries = TicketSummarizer.summarize(interactions)
        assert [s.ticket_id for s in summaries] == ["TCK-200", "TCK-100"]

    def test_to_dict(self, interactions):
        data = TicketSummarizer.summarize(interactions)[0].to_dict()
        assert data["ticket_id"] == "TCK-200"
        assert data["unique_employees"] == 1
        assert data["first_created"].startswith("2024-01-16T10:00:00")
