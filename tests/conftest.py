import os
import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

# Pas de dossier ./data pendant les tests
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Créer engine SQLite pour tests AVANT d'importer app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer le engine et SessionLocal du core.database AVANT d'importer app
import workplan.core.database
workplan.core.database.engine = test_engine
workplan.core.database.SessionLocal = TestingSessionLocal

# Maintenant importer app (qui utilisera notre engine SQLite)
from workplan.core.database import Base, get_db
from workplan.main import app
from workplan.client.api import TaskApi
from workplan.client.errors import ApiError, TaskNotFoundError
from workplan.client.preferences import ClientPreferences
from workplan.schemas.task import TaskResponse

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)

# Override la dépendance
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def http_api(client):
    """Client HTTP du tableau branché sur l'app de test"""
    return TaskApi(base_url="http://testserver/api", session=client)


@pytest.fixture
def prefs(tmp_path):
    """Préférences isolées dans un dossier temporaire"""
    return ClientPreferences.load(tmp_path / "preferences.json")


# ========== FAKES CLIENT ==========

class FakeApi:
    """Serveur en mémoire avec la même interface que TaskApi"""

    def __init__(self):
        self.tasks = {}
        self.next_id = 1
        self.calls = []
        self.reorder_batches = []
        self.fail_on = set()

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise ApiError(f"{name} failed")

    def seed(self, title, column_id, position=None, **extra):
        if position is None:
            position = sum(1 for t in self.tasks.values() if t.column_id == column_id)
        task = TaskResponse(id=self.next_id, title=title, column_id=column_id, position=position, **extra)
        self.tasks[task.id] = task
        self.next_id += 1
        return task.model_copy()

    def column(self, column_id):
        tasks = [t for t in self.tasks.values() if t.column_id == column_id]
        return [t.title for t in sorted(tasks, key=lambda t: t.position)]

    def list_tasks(self):
        self._call("list_tasks")
        return [t.model_copy() for t in sorted(self.tasks.values(), key=lambda t: (t.position, t.id))]

    def create_task(self, title, description=None, followup=None, column_id=None):
        self._call("create_task")
        return self.seed(title, column_id or "in-progress", description=description or "", followup=followup or "")

    def update_task(self, task_id, **fields):
        self._call("update_task")
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        task = self.tasks[task_id].model_copy(update=fields)
        self.tasks[task_id] = task
        return task.model_copy()

    def delete_task(self, task_id):
        self._call("delete_task")
        if self.tasks.pop(task_id, None) is None:
            raise TaskNotFoundError(task_id)

    def reorder(self, items):
        if not items:
            return
        self._call("reorder")
        self.reorder_batches.append(list(items))
        for item in items:
            task = self.tasks[item.id]
            task.column_id = item.column_id
            task.position = item.position

    def clear_tasks(self):
        self._call("clear_tasks")
        count = len(self.tasks)
        self.tasks.clear()
        return count


class FakeTimer:
    """Remplace threading.Timer : se déclenche à la main avec fire()"""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def timers():
    """Fabrique de FakeTimer qui garde la trace des timers créés"""
    created = []

    def factory(interval, function):
        timer = FakeTimer(interval, function)
        created.append(timer)
        return timer

    factory.created = created
    return factory
