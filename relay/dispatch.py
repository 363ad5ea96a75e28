"""Daily task dispatch.

Opens the DM with the target user, clears earlier checklists, fetches
pending Nozbe tasks, picks the top few and posts them as a checklist.
Each run is independent; nothing is kept between runs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from .config import Config, get_config
from .messages import render, render_empty
from .slack import PurgeResult, SlackNotifier, get_notifier
from .task import Task
from .tasks_provider import NozbeTasksProvider, get_provider

logger = logging.getLogger(__name__)

MAX_TASKS = 3


@dataclass
class DispatchResult:
    """What a dispatch run did."""
    channel: str
    purge: PurgeResult
    task_ids: List[str] = field(default_factory=list)
    ts: Optional[str] = None
    empty: bool = False


def select_top_tasks(tasks: Sequence[Task], limit: int = MAX_TASKS) -> List[Task]:
    """Pick the tasks to show.

    Next-action tasks come first; otherwise Nozbe's order is kept (the
    sort is stable).
    """
    ranked = sorted(tasks, key=lambda task: not task.next)
    return ranked[:limit]


def send_daily_tasks(config: Optional[Config] = None,
                     provider: Optional[NozbeTasksProvider] = None,
                     notifier: Optional[SlackNotifier] = None,
                     now: Optional[datetime] = None) -> DispatchResult:
    """Run the dispatch workflow once.

    Args:
        config: Settings (defaults to the process-wide config)
        provider: Nozbe provider (defaults to the shared instance)
        notifier: Slack notifier (defaults to the shared instance)
        now: Clock reading for message text

    Returns:
        DispatchResult describing the posted message

    Raises:
        ConfigurationError: if a required setting is missing
        RemoteFetchError: if tasks cannot be fetched
        MessagePublishError: if the message cannot be posted
    """
    config = config or get_config()
    logger.info(f"Starting daily task send at {datetime.now().isoformat()}")

    config.require_task_api()
    config.require_slack()

    provider = provider or get_provider()
    notifier = notifier or get_notifier()

    channel = notifier.open_dm(config.slack_user_id)
    purge = notifier.purge_bot_messages(channel)

    tasks = provider.list_pending_tasks(config.nozbe_project_id)

    if not tasks:
        logger.info("No tasks found for today")
        ts = notifier.post_message(render_empty(channel))
        return DispatchResult(channel=channel, purge=purge, ts=ts, empty=True)

    selected = select_top_tasks(tasks)
    logger.info(f"Selected top {len(selected)} tasks to send")

    message = render(selected, channel, project_id=config.nozbe_project_id, now=now)
    ts = notifier.post_message(message)
    logger.info(f"Successfully sent {len(selected)} tasks to Slack")

    return DispatchResult(
        channel=channel,
        purge=purge,
        task_ids=[task.id for task in selected],
        ts=ts,
    )
