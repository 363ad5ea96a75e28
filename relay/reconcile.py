"""Remove checked tasks from a previously published checklist.

Works only on the block structure Slack echoes back with the action, so
no record of the last selection is kept locally.
"""

import copy
from typing import Any, Dict, Iterable, List

COMPLETE_BANNER_TEXT = "🎉 All tasks complete! Great work."


def completion_banner() -> Dict[str, Any]:
    return {
        "type": "section",
        "block_id": "tasks_complete",
        "text": {"type": "mrkdwn", "text": COMPLETE_BANNER_TEXT},
    }


def _strip_checked(element: Dict[str, Any], checked: set) -> Dict[str, Any]:
    element = copy.deepcopy(element)
    element["options"] = [
        option for option in element.get("options", [])
        if option.get("value") not in checked
    ]
    if "initial_options" in element:
        initial = [
            option for option in element["initial_options"]
            if option.get("value") not in checked
        ]
        if initial:
            element["initial_options"] = initial
        else:
            del element["initial_options"]
    return element


def reconcile_blocks(blocks: List[Dict[str, Any]], checked_ids: Iterable[str]) -> List[Dict[str, Any]]:
    """Return the blocks with checked options removed.

    An actions block whose checkbox groups all end up empty is replaced by
    a static completion banner at the same position. Other blocks are
    copied through unchanged. Running it again with the same ids is a no-op.

    Args:
        blocks: Current message blocks
        checked_ids: Task IDs the user just checked

    Returns:
        New block list (the input is not modified)
    """
    checked = set(checked_ids)
    result = []
    for block in blocks:
        if block.get("type") != "actions":
            result.append(copy.deepcopy(block))
            continue

        elements = block.get("elements", [])
        if not any(e.get("type") == "checkboxes" for e in elements):
            result.append(copy.deepcopy(block))
            continue

        new_elements = []
        for element in elements:
            if element.get("type") != "checkboxes":
                new_elements.append(copy.deepcopy(element))
                continue
            stripped = _strip_checked(element, checked)
            # Slack rejects checkbox groups without options
            if stripped["options"]:
                new_elements.append(stripped)

        if any(e.get("type") == "checkboxes" for e in new_elements):
            new_block = copy.deepcopy(block)
            new_block["elements"] = new_elements
            result.append(new_block)
        else:
            result.append(completion_banner())
    return result


def remaining_task_ids(blocks: List[Dict[str, Any]]) -> List[str]:
    """Task IDs still offered as checkboxes, in display order."""
    ids = []
    for block in blocks:
        if block.get("type") != "actions":
            continue
        for element in block.get("elements", []):
            if element.get("type") == "checkboxes":
                ids.extend(option.get("value") for option in element.get("options", []))
    return ids
