"""JSON export / import of a board."""

import json
from typing import Iterable, Union

from pydantic import ValidationError

from workplan.client.errors import ImportDataError
from workplan.schemas.task import ExportedTask, ExportPayload, TaskResponse


def export_payload(tasks: Iterable[TaskResponse]) -> dict:
    """Board content without ids or timestamps, sorted by column then position."""
    ordered = sorted(tasks, key=lambda t: (t.column_id, t.position))
    payload = ExportPayload(tasks=[
        ExportedTask(
            title=t.title,
            description=t.description,
            followup=t.followup,
            column_id=t.column_id,
            position=t.position,
        )
        for t in ordered
    ])
    return payload.model_dump(mode="json")


def export_json(tasks: Iterable[TaskResponse]) -> str:
    return json.dumps(export_payload(tasks), indent=2, ensure_ascii=False)


def parse_import(data: Union[str, bytes, dict]) -> ExportPayload:
    """Validate an import payload as a whole, before anything is written."""
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ImportDataError(f"Import is not valid JSON: {e}") from e

    # Export brut sous forme de liste de tâches
    if isinstance(data, list):
        data = {"tasks": data}

    try:
        return ExportPayload.model_validate(data)
    except ValidationError as e:
        raise ImportDataError(f"Invalid import data: {e.error_count()} error(s)") from e
