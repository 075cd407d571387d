"""
Scoring configuration and refresh scheduler tests.

Run: pytest tests/test_config_manager.py -v
"""

import pytest

from qa_insights.analytics.domain import ScoringConfig
from qa_insights.analytics.infrastructure import ScoringConfigManager, SnapshotScheduler
from qa_insights.core import ConfigurationException

VALID_YAML = """
allowed_employees:
  - Sajni V
  - " Nithin V P "
  - Sajni V
  - ""
insight_thresholds:
  target_score: 7.0
  excellent_score: 9.0
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "scoring_config.yaml"
    path.write_text(VALID_YAML, encoding="utf-8")
    return path


class TestScoringConfig:

    def test_allowed_employees_are_cleaned(self):
        config = ScoringConfig(allowed_employees=[" Sajni V", "Sajni V", "", "Abin Joseph"])
        assert config.allowed_employees == ["Sajni V", "Abin Joseph"]

    def test_defaults(self):
        config = ScoringConfig()
        assert config.allowed_employees == []
        assert config.insight_thresholds.violation_threshold == 2


class TestScoringConfigManager:

    def test_load(self, config_file):
        manager = ScoringConfigManager()
        config = manager.load(config_file)

        assert config.allowed_employees == ["Sajni V", "Nithin V P"]
        assert config.insight_thresholds.target_score == 7.0
        assert manager.get_config() is config

    def test_missing_file_uses_defaults(self, tmp_path):
        manager = ScoringConfigManager()
        config = manager.load(tmp_path / "absent.yaml")

        assert config.allowed_employees == []
        assert config.insight_thresholds.target_score == 7.5

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert ScoringConfigManager().load(path).allowed_employees == []

    @pytest.mark.parametrize(
        "content",
        [
            "allowed_employees: [unclosed",
            "- just\n- a list\n",
            "insight_thresholds:\n  target_score: 8\n  excellent_score: 7\n",
        ],
    )
    def test_invalid_initial_file_raises(self, tmp_path, content):
        path = tmp_path / "bad.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationException):
            ScoringConfigManager().load(path)

    def test_get_config_before_load(self):
        with pytest.raises(RuntimeError):
            ScoringConfigManager().get_config()

    def test_reload_picks_up_changes(self, config_file):
        manager = ScoringConfigManager()
        manager.load(config_file)

        config_file.write_text("allowed_employees: [Bency Benny]\n", encoding="utf-8")

        assert manager.reload() is True
        assert manager.get_config().allowed_employees == ["Bency Benny"]

    def test_bad_reload_keeps_previous_config(self, config_file):
        manager = ScoringConfigManager()
        previous = manager.load(config_file)

        config_file.write_text("allowed_employees: [unclosed", encoding="utf-8")

        assert manager.reload() is False
        assert manager.get_config() is previous

    def test_reload_before_load(self):
        assert ScoringConfigManager().reload() is False

    def test_watching_lifecycle(self, config_file):
        manager = ScoringConfigManager()
        manager.load(config_file)

        manager.start_watching()
        manager.stop_watching()
        manager.stop_watching()

    def test_watching_requires_load(self):
        with pytest.raises(RuntimeError):
            ScoringConfigManager().start_watching()


class TestSnapshotScheduler:

    async def test_lifecycle(self):
        calls = []

        async def job():
            calls.append(1)

        scheduler = SnapshotScheduler(interval_seconds=3600)
        await scheduler.start(job)
        await scheduler.start(job)

        assert scheduler.is_running

        await scheduler.stop()
        await scheduler.stop()

        assert not scheduler.is_running
        assert calls == []
