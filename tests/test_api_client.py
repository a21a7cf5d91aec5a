from unittest.mock import MagicMock

import pytest
import requests

from workplan.client.api import TaskApi
from workplan.client.board import BoardController
from workplan.client.errors import ApiError, TaskNotFoundError
from workplan.client.events import EventHub
from workplan.client.store import TaskStore
from workplan.client.sync import SyncCoordinator, SyncState
from workplan.schemas.task import ReorderItem

# ========== TEST TASKAPI CONTRE L'APP ==========
def test_create_and_list(http_api):
    created = http_api.create_task("Rédiger", column_id="planned")
    assert created.id > 0
    assert created.description == ""

    tasks = http_api.list_tasks()
    assert [t.title for t in tasks] == ["Rédiger"]
    assert tasks[0].column_id == "planned"

def test_update_and_delete(http_api):
    task = http_api.create_task("Avant")
    updated = http_api.update_task(task.id, title="Après", followup="demain")
    assert updated.title == "Après"
    assert updated.followup == "demain"

    http_api.delete_task(task.id)
    assert http_api.list_tasks() == []

def test_missing_task_raises_not_found(http_api):
    with pytest.raises(TaskNotFoundError) as exc:
        http_api.update_task(999, title="x")
    assert exc.value.task_id == 999
    with pytest.raises(TaskNotFoundError):
        http_api.delete_task(999)

def test_reorder_and_clear(http_api):
    a = http_api.create_task("A", column_id="planned")
    b = http_api.create_task("B", column_id="planned")
    http_api.reorder([
        ReorderItem(id=b.id, column_id="planned", position=0),
        ReorderItem(id=a.id, column_id="completed", position=0),
    ])
    tasks = {t.title: t for t in http_api.list_tasks()}
    assert (tasks["B"].column_id, tasks["B"].position) == ("planned", 0)
    assert (tasks["A"].column_id, tasks["A"].position) == ("completed", 0)

    assert http_api.clear_tasks() == 2
    assert http_api.list_tasks() == []

def test_reorder_unknown_id_is_api_error(http_api):
    with pytest.raises(ApiError) as exc:
        http_api.reorder([ReorderItem(id=42, column_id="planned", position=0)])
    assert exc.value.status_code == 404

def test_validation_error_is_api_error(http_api):
    with pytest.raises(ApiError) as exc:
        http_api.create_task("")
    assert exc.value.status_code == 422

# ========== TEST ERREURS RÉSEAU ==========
def test_connection_error_becomes_api_error():
    session = MagicMock()
    session.request.side_effect = requests.ConnectionError("refused")
    api = TaskApi(base_url="http://localhost:1/api", session=session, timeout=2)

    with pytest.raises(ApiError) as exc:
        api.list_tasks()
    assert exc.value.status_code is None
    session.request.assert_called_once_with("GET", "http://localhost:1/api/tasks", json=None, timeout=2)

def test_malformed_list_becomes_api_error():
    response = MagicMock(status_code=200, content=b"[...]")
    response.json.return_value = [{"id": 1}]
    session = MagicMock()
    session.request.return_value = response

    with pytest.raises(ApiError):
        TaskApi(base_url="http://x/api", session=session).list_tasks()

def test_empty_reorder_sends_nothing():
    session = MagicMock()
    TaskApi(base_url="http://x/api", session=session).reorder([])
    session.request.assert_not_called()

# ========== TEST BOUT EN BOUT ==========
def test_board_against_server(http_api, prefs, timers):
    """Le tableau complet contre la vraie API : ajout, déplacement, suppression"""
    board = BoardController(api=http_api, preferences=prefs, timer_factory=timers)
    board.open()

    board.add_many("- A\n- B\n- C", "planned")
    c = next(t.id for t in board.store.all() if t.title == "C")
    board.move_task(c, "planned", 0)
    a = next(t.id for t in board.store.all() if t.title == "A")
    board.delete_task(a)

    # updated_at a bougé côté serveur : un refresh, puis plus rien à remplacer
    board.refresh()
    assert board.refresh() is False
    server = sorted((t.title, t.column_id, t.position) for t in http_api.list_tasks())
    assert server == [("B", "planned", 1), ("C", "planned", 0)]

# ========== TEST RÉPONSES INATTENDUES ==========
def html_session():
    """Proxy qui répond 200 avec une page HTML"""
    response = MagicMock(status_code=200, content=b"<html>maintenance</html>")
    response.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)
    session = MagicMock()
    session.request.return_value = response
    return session

def test_non_json_body_becomes_api_error():
    api = TaskApi(base_url="http://x/api", session=html_session())
    with pytest.raises(ApiError) as exc:
        api.list_tasks()
    assert exc.value.status_code == 200

def test_malformed_task_becomes_api_error():
    response = MagicMock(status_code=201, content=b"{...}")
    response.json.return_value = {"title": "sans id"}
    session = MagicMock()
    session.request.return_value = response
    api = TaskApi(base_url="http://x/api", session=session)

    with pytest.raises(ApiError):
        api.create_task("T")
    with pytest.raises(ApiError):
        api.update_task(1, title="T")

def test_sync_with_html_body_fails_silently(timers):
    api = TaskApi(base_url="http://x/api", session=html_session())
    events = EventHub()
    failures = []
    events.subscribe("sync_failed", failures.append)
    sync = SyncCoordinator(TaskStore(), api, interval=10, events=events, timer_factory=timers)

    assert sync.sync_now() is False
    assert len(failures) == 1
    assert sync.state == SyncState.IDLE

def test_board_notifies_on_html_body(prefs, timers):
    board = BoardController(api=TaskApi(base_url="http://x/api", session=html_session()),
                            preferences=prefs, timer_factory=timers)
    notes = []
    board.events.subscribe("notification", notes.append)

    assert board.add_task("T") is None
    assert notes[-1].level == "error"
