"""Handling of checklist interactions.

When the user checks tasks off, complete them in Nozbe one at a time and
edit the original message so the checked options disappear.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import Config, get_config
from .messages import TASK_ACTION_ID
from .reconcile import reconcile_blocks, remaining_task_ids
from .slack import SlackNotifier, get_notifier
from .tasks_provider import NozbeTasksProvider, get_provider

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of one checklist interaction."""
    checked: List[str] = field(default_factory=list)
    completed: Dict[str, bool] = field(default_factory=dict)
    updated: bool = False


def extract_checked_task_ids(payload: Dict[str, Any]) -> List[str]:
    """Task IDs selected in the checklist action(s) of a block_actions payload."""
    ids: List[str] = []
    for action in payload.get('actions', []):
        if action.get('type') != 'checkboxes' or action.get('action_id') != TASK_ACTION_ID:
            continue
        for option in action.get('selected_options') or []:
            value = option.get('value')
            if value is not None and value not in ids:
                ids.append(value)
    return ids


def complete_checked_tasks(task_ids: List[str], provider: NozbeTasksProvider) -> Dict[str, bool]:
    """Complete tasks sequentially; a failure does not stop the rest."""
    results: Dict[str, bool] = {}
    for task_id in task_ids:
        results[task_id] = provider.complete_task(task_id)
    failed = [task_id for task_id, ok in results.items() if not ok]
    if failed:
        logger.warning(f"Could not complete {len(failed)} task(s) in Nozbe: {', '.join(failed)}")
    return results


def _update_text(remaining: List[str]) -> str:
    if remaining:
        return f"{len(remaining)} task(s) remaining"
    return "All tasks complete!"


def handle_task_complete(payload: Dict[str, Any],
                         provider: Optional[NozbeTasksProvider] = None,
                         notifier: Optional[SlackNotifier] = None,
                         config: Optional[Config] = None) -> ActionResult:
    """Process a block_actions payload from the task checklist.

    Args:
        payload: Parsed Slack interactivity payload
        provider: Nozbe provider (defaults to the shared instance)
        notifier: Slack notifier (defaults to the shared instance)
        config: Settings, used for the fallback channel

    Returns:
        ActionResult with the checked IDs, per-task completion outcome and
        whether the message was updated
    """
    result = ActionResult(checked=extract_checked_task_ids(payload))
    if not result.checked:
        logger.debug("No checked tasks in action payload")
        return result

    logger.info(f"Processing {len(result.checked)} checked tasks")
    provider = provider or get_provider()
    notifier = notifier or get_notifier()
    config = config or get_config()

    result.completed = complete_checked_tasks(result.checked, provider)

    message = payload.get('message') or {}
    ts = message.get('ts')
    channel = (payload.get('channel') or {}).get('id') or config.slack_user_id
    if not ts or not channel:
        logger.warning("Action payload has no message reference; skipping message update")
        return result

    blocks = reconcile_blocks(message.get('blocks') or [], result.checked)
    remaining = remaining_task_ids(blocks)
    result.updated = notifier.update_message(channel, ts, blocks, _update_text(remaining))
    if not result.updated:
        logger.warning(f"Message {ts} was not updated; Nozbe completions are kept")
    return result
