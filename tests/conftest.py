"""Shared fixtures: in-memory repository and static scoring config."""

import pytest

from qa_insights.analytics.application import DashboardService, IngestionService
from qa_insights.analytics.domain import ScoringConfig

from helpers import ALLOWED, InMemoryInteractionRepository, StaticConfigProvider


@pytest.fixture
def scoring_config():
    return ScoringConfig(allowed_employees=ALLOWED)


@pytest.fixture
def config_provider(scoring_config):
    return StaticConfigProvider(scoring_config)


@pytest.fixture
def repository():
    return InMemoryInteractionRepository()


@pytest.fixture
def dashboard_service(repository, config_provider):
    return DashboardService(repository, config_provider)


@pytest.fixture
def ingestion_service(repository):
    return IngestionService(repository)
