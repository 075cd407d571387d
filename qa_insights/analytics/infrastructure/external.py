"""
Analytics External Integrations
===============================

Two pieces of runtime machinery live here:

- ScoringConfigManager: the YAML scoring file (allow-list and insight
  thresholds), swapped in place by a watchdog observer when it is edited.
- SnapshotScheduler: an APScheduler interval job that keeps the dashboard
  snapshot fresh between explicit refresh calls.
"""

import threading
from pathlib import Path
from typing import Awaitable, Callable, Optional

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from qa_insights.analytics.application import IScoringConfigProvider
from qa_insights.analytics.domain import ScoringConfig
from qa_insights.core import ConfigurationException
from qa_insights.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

REFRESH_JOB_ID = "snapshot_refresh"


class ScoringFileEventHandler(FileSystemEventHandler):
    """Forwards edits of one file to ScoringConfigManager.reload()."""

    def __init__(self, manager: "ScoringConfigManager", watched: Path):
        super().__init__()
        self.manager = manager
        self.watched = watched.resolve()

    def _is_watched(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        return Path(event.src_path).resolve() == self.watched

    def _reload(self, event: FileSystemEvent, reason: str) -> None:
        if self._is_watched(event):
            logger.info("Scoring config %s", reason, extra={"path": str(self.watched)})
            self.manager.reload()

    def on_modified(self, event: FileSystemEvent) -> None:
        self._reload(event, "modified")

    def on_created(self, event: FileSystemEvent) -> None:
        # atomic saves (write temp file, rename) arrive as a create
        self._reload(event, "replaced")


def read_scoring_file(path: Path) -> ScoringConfig:
    """
    Parse a scoring YAML file.

    A missing or empty file yields the default configuration.

    Raises:
        ConfigurationException: the file is not YAML, not a mapping, or
            fails ScoringConfig validation
    """
    if not path.exists():
        logger.warning("No scoring config at path, falling back to defaults", extra={"path": str(path)})
        return ScoringConfig()

    context = {"path": str(path)}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationException(f"Scoring config is not valid YAML: {e}", context) from e

    if raw is None:
        return ScoringConfig()
    if not isinstance(raw, dict):
        raise ConfigurationException("Scoring config must be a mapping", context)

    try:
        return ScoringConfig(**raw)
    except ValidationError as e:
        raise ConfigurationException(
            f"Scoring config rejected with {e.error_count()} error(s)",
            {**context, "errors": e.errors(include_url=False)}
        ) from e


class ScoringConfigManager(IScoringConfigProvider):
    """
    Holds the current ScoringConfig and replaces it on reload.

    Readers always see a complete config object: a reload either swaps in a
    fully validated replacement or leaves the current one untouched.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[ScoringConfig] = None
        self._source: Optional[Path] = None
        self._watcher: Optional[Observer] = None

    def _publish(self, config: ScoringConfig) -> None:
        with self._lock:
            self._current = config

    def load(self, path: Path) -> ScoringConfig:
        """
        First load at startup. Unlike reload(), a broken file is fatal here.

        Raises:
            ConfigurationException: the file exists but is unusable
        """
        self._source = Path(path)
        config = read_scoring_file(self._source)
        self._publish(config)
        logger.info(
            "Scoring config loaded",
            extra={"path": str(self._source), "allowed_employees": len(config.allowed_employees)}
        )
        return config

    def reload(self) -> bool:
        """Re-read the file. On failure log it, keep the current config and return False."""
        if self._source is None:
            return False

        try:
            config = read_scoring_file(self._source)
        except (ConfigurationException, OSError) as e:
            logger.error(
                "Scoring config reload rejected, previous config stays active",
                extra={"path": str(self._source), "error": str(e)}
            )
            return False

        self._publish(config)
        logger.info("Scoring config reloaded", extra={"allowed_employees": len(config.allowed_employees)})
        return True

    def get_config(self) -> ScoringConfig:
        with self._lock:
            current = self._current
        if current is None:
            raise RuntimeError("Scoring config requested before load()")
        return current

    def start_watching(self) -> None:
        """
        Reload automatically when the file changes.

        No-op when the file does not exist yet; logs and carries on when
        the platform refuses an inotify/FSEvents watch.
        """
        if self._source is None:
            raise RuntimeError("start_watching() called before load()")
        if not self._source.exists():
            logger.info("Scoring config absent, not watching", extra={"path": str(self._source)})
            return

        watcher = Observer()
        # watch the directory; editors replace the file rather than write it
        watcher.schedule(
            ScoringFileEventHandler(self, self._source),
            str(self._source.resolve().parent),
            recursive=False
        )
        try:
            watcher.start()
        except OSError as e:
            logger.warning("Cannot watch scoring config, hot reload disabled", extra={"error": str(e)})
            return

        self._watcher = watcher
        logger.info("Watching scoring config", extra={"path": str(self._source)})

    def stop_watching(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher is None:
            return
        watcher.stop()
        watcher.join(timeout=5)


class SnapshotScheduler:
    """Runs one coroutine on a fixed interval inside the app's event loop."""

    def __init__(self, interval_seconds: int = 300):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    async def start(self, job: Callable[[], Awaitable[None]]) -> None:
        """Schedule ``job``. A second call while running is ignored."""
        if self.is_running:
            logger.warning("Snapshot scheduler start ignored, already running")
            return

        scheduler = AsyncIOScheduler()
        # one refresh at a time; a late tick still runs within a minute
        scheduler.add_job(
            job,
            trigger="interval",
            seconds=self.interval_seconds,
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Snapshot refresh scheduled", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return
        scheduler.shutdown(wait=False)
        logger.info("Snapshot scheduler stopped")
