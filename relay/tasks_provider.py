"""Nozbe task API provider wrapper.

Reads pending tasks for a project and marks tasks complete. Reads fail
loudly; completion writes are best effort and report success as a bool.
"""

import logging
import requests
from typing import Optional, List, Dict

from .config import Config, ConfigurationError, get_config
from .task import Task, normalize_task_payload

logger = logging.getLogger(__name__)


class RemoteFetchError(RuntimeError):
    """Raised when the task list cannot be read from Nozbe."""


class NozbeTasksProvider:
    """Wrapper for Nozbe API operations."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize the Nozbe provider.

        Args:
            config: Settings to use (defaults to the process-wide config)
        """
        self.config = config or get_config()
        self.base_url = self.config.nozbe_api_url.rstrip('/')
        self.timeout = self.config.task_api_timeout

    def _headers(self) -> Dict[str, str]:
        self.config.require_task_api()
        return {
            'Authorization': self.config.nozbe_api_key,
            'Client': self.config.nozbe_client_id,
        }

    def list_pending_tasks(self, project_id: str) -> List[Task]:
        """List tasks of a project that are not completed.

        Args:
            project_id: Nozbe project ID

        Returns:
            Pending tasks in the order Nozbe returned them

        Raises:
            ConfigurationError: if the API key is not configured
            RemoteFetchError: on network, HTTP or decoding failure
        """
        logger.info(f"Fetching tasks from Nozbe for project: {project_id}")
        headers = self._headers()

        try:
            response = requests.get(
                f"{self.base_url}/tasks",
                params={'type': 'project', 'id': project_id},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Error fetching Nozbe tasks: {e}")
            raise RemoteFetchError(f"Failed to fetch tasks for project {project_id}: {e}") from e
        except ValueError as e:
            logger.error(f"Nozbe returned a non-JSON body: {e}")
            raise RemoteFetchError(f"Invalid tasks response for project {project_id}") from e

        logger.debug(f"Raw API response: {payload!r}")
        tasks = [Task.from_api(entry) for entry in normalize_task_payload(payload)]
        pending = [task for task in tasks if not task.completed]
        logger.info(f"Fetched {len(tasks)} tasks from Nozbe, {len(pending)} pending")
        return pending

    def complete_task(self, task_id: str) -> bool:
        """Mark a Nozbe task as completed.

        Failures are logged and reported as False so callers can carry on
        with other tasks.

        Args:
            task_id: Nozbe task ID

        Returns:
            True if Nozbe accepted the update, False otherwise
        """
        logger.info(f"Marking task {task_id} as complete in Nozbe")
        try:
            headers = self._headers()
        except ConfigurationError as e:
            logger.error(f"Cannot complete task {task_id}: {e}")
            return False
        headers['Content-Type'] = 'application/json'

        try:
            response = requests.put(
                f"{self.base_url}/task",
                json={'id': task_id, 'completed': True},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(
                f"Error marking task {task_id} as complete: {e} "
                f"(status {e.response.status_code if e.response is not None else 'n/a'}, "
                f"body {e.response.text if e.response is not None else ''!r})"
            )
            return False
        except requests.RequestException as e:
            logger.error(f"Error marking task {task_id} as complete: {e}")
            return False

        logger.info(f"Task {task_id} marked as complete")
        return True


# Global singleton instance
_default_provider: Optional[NozbeTasksProvider] = None


def get_provider() -> NozbeTasksProvider:
    """Get or create the default NozbeTasksProvider instance."""
    global _default_provider
    if _default_provider is None:
        _default_provider = NozbeTasksProvider()
    return _default_provider
