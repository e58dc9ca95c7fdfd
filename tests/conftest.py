from datetime import datetime, timedelta, timezone
from pathlib import Path
import os
import sys
import pytest

# Run Qt headless when no display is available
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure src/ is on sys.path for direct test invocation without an editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from focus_planner.database_manager import DBConfig, DatabaseManager
from focus_planner.models import EMPTY_STATE, Task


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


class RecordingNotifier:
    def __init__(self, granted: bool = True):
        self.granted = granted
        self.permission_requests = 0
        self.sent = []

    def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.granted

    def notify(self, kind, payload=None) -> None:
        self.sent.append((kind, payload))

    @property
    def kinds(self):
        return [k for k, _ in self.sent]


class MemoryStore:
    def __init__(self, initial=EMPTY_STATE):
        self.saved = initial
        self.save_count = 0

    def save(self, state) -> None:
        self.saved = state
        self.save_count += 1

    def load(self, now=None):
        return self.saved


@pytest.fixture()
def db(tmp_path: Path):
    config = DBConfig(path=tmp_path / "test.sqlite")
    manager = DatabaseManager(config)
    manager.init_db()
    yield manager
    manager.close()


@pytest.fixture()
def clock():
    return FakeClock(datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def notifier():
    return RecordingNotifier()


def make_task(hours: float = 1.0, title: str = "Write report", task_id: int | None = 1) -> Task:
    return Task(id=task_id, title=title, duration_hours=hours)

