"""Nozbe task model and response normalization.

Only the task id is used to correlate a task across Nozbe and Slack; the
other fields are display hints.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Keys under which the task list may be wrapped, checked in order.
WRAPPER_KEYS = ('items', 'tasks', 'data')


@dataclass
class Task:
    """A single Nozbe task."""
    id: str
    name: str
    completed: bool = False
    due: Optional[datetime] = None
    next: bool = False
    project_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Task":
        """Build a Task from one entry of the Nozbe tasks response."""
        project_id = data.get('project_id')
        return cls(
            id=str(data.get('id', '')),
            name=str(data.get('name') or ''),
            completed=bool(data.get('completed', False)),
            due=_parse_datetime(data.get('datetime')),
            next=data.get('next') is True,
            project_id=str(project_id) if project_id is not None else None,
            raw=data,
        )


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    # Handle Z suffix
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug(f"Ignoring unparseable task datetime: {value!r}")
        return None


def normalize_task_payload(payload: Any) -> List[Dict[str, Any]]:
    """Flatten the shapes the tasks endpoint may answer with into a list.

    Accepts a bare list, an object wrapping the list under one of
    WRAPPER_KEYS, or a single task object.
    """
    if isinstance(payload, list):
        entries = payload
    elif isinstance(payload, dict):
        entries = None
        for key in WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                entries = payload[key]
                break
        if entries is None:
            entries = [payload]
    else:
        logger.warning(f"Unexpected tasks payload type: {type(payload).__name__}")
        return []

    tasks = []
    for entry in entries:
        if isinstance(entry, dict):
            tasks.append(entry)
        else:
            logger.warning(f"Skipping non-object task entry: {entry!r}")
    return tasks
