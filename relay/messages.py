"""Block Kit rendering of the daily task checklist.

Rendering is pure: the clock is only read for display text, and callers
may pass ``now`` to pin it.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .task import Task

MAX_OPTION_LENGTH = 75
ELLIPSIS = "..."

TASK_BLOCK_ID = "task_checkboxes"
TASK_ACTION_ID = "task_complete"

EMPTY_TEXT = "🎉 No pending tasks found in Nozbe! All caught up!"


def truncate_name(name: str, limit: int = MAX_OPTION_LENGTH) -> str:
    """Shorten a task name to fit a checkbox label."""
    if len(name) <= limit:
        return name
    return name[:limit - len(ELLIPSIS)] + ELLIPSIS


def _long_date(moment: datetime) -> str:
    # e.g. "Monday, October 19"
    return f"{moment.strftime('%A, %B')} {moment.day}"


def _short_time(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment.minute:02d} {'AM' if moment.hour < 12 else 'PM'}"


def build_option(task: Task) -> Dict[str, Any]:
    """Build a single checkbox option for a task."""
    option: Dict[str, Any] = {
        "text": {"type": "plain_text", "text": truncate_name(task.name)},
        "value": task.id,
    }
    if task.due:
        option["description"] = {
            "type": "plain_text",
            "text": f"Due {task.due.strftime('%b')} {task.due.day}",
        }
    return option


def render(tasks: Sequence[Task], channel: str, project_id: Optional[str] = None,
           now: Optional[datetime] = None) -> Dict[str, Any]:
    """Render tasks as an interactive checklist message.

    Args:
        tasks: Selected tasks, already ranked; order is kept as given
        channel: Target conversation ID
        project_id: Project shown in the footer
        now: Clock reading for the header/footer (defaults to now)

    Returns:
        chat.postMessage arguments: channel, text and blocks

    Raises:
        ValueError: if two tasks share an ID
    """
    now = now or datetime.now()
    seen = set()
    for task in tasks:
        if task.id in seen:
            raise ValueError(f"Duplicate task id in selection: {task.id}")
        seen.add(task.id)

    today = _long_date(now)
    options = [build_option(task) for task in tasks]
    footer = f"_Project: {project_id} • Updated: {_short_time(now)}_" if project_id \
        else f"_Updated: {_short_time(now)}_"

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"📋 Daily Tasks - {today}"},
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"Here are your top {len(tasks)} tasks from Nozbe. Check them off as you complete them!",
            },
        },
        {"type": "divider"},
        {
            "type": "actions",
            "block_id": TASK_BLOCK_ID,
            "elements": [
                {
                    "type": "checkboxes",
                    "action_id": TASK_ACTION_ID,
                    "options": options,
                }
            ],
        },
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": footer}],
        },
    ]

    return {
        "channel": channel,
        "text": f"Daily Tasks - {today}: {len(tasks)} task(s) to complete",
        "blocks": blocks,
    }


def render_empty(channel: str) -> Dict[str, Any]:
    """Static message for a run with nothing pending."""
    return {"channel": channel, "text": EMPTY_TEXT}
