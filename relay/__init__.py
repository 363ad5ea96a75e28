"""Nozbe to Slack daily task relay.

This package provides:
- Environment configuration (config.py)
- Nozbe task model and API provider (task.py, tasks_provider.py)
- Block Kit checklist rendering and reconciliation (messages.py, reconcile.py)
- Slack Web API access (slack.py)
- The dispatch workflow and checklist action handling (dispatch.py, actions.py)
"""

from .config import ConfigurationError
from .tasks_provider import RemoteFetchError
from .slack import MessagePublishError

__all__ = ['ConfigurationError', 'RemoteFetchError', 'MessagePublishError']
