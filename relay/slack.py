"""Slack messaging for the daily task checklist.

Wraps the Web API calls the relay needs: opening the DM, clearing old
bot messages, posting the checklist and editing it in place.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from .config import Config, get_config

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100
HISTORY_SCOPES = "channels:history, groups:history, im:history, mpim:history"


class MessagePublishError(RuntimeError):
    """Raised when the checklist message cannot be posted."""


@dataclass
class PurgeResult:
    """Outcome of clearing previous bot messages."""
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    error: Optional[str] = None


def _slack_error(exc: SlackApiError) -> str:
    response = getattr(exc, 'response', None)
    if response is not None:
        try:
            return response.get('error') or str(exc)
        except AttributeError:
            pass
    return str(exc)


class SlackNotifier:
    """Centralized Slack Web API access."""

    def __init__(self, client: Optional[WebClient] = None, config: Optional[Config] = None):
        """Initialize with a WebClient, or build one from the bot token."""
        self.config = config or get_config()
        if client is None:
            if not self.config.slack_bot_token:
                logger.warning("SLACK_BOT_TOKEN not set. Slack calls will fail until it is configured.")
            client = WebClient(token=self.config.slack_bot_token)
        self.client = client
        self._bot_id: Optional[str] = None

    def bot_id(self) -> Optional[str]:
        """Bot ID of this app, resolved once via auth.test."""
        if self._bot_id is None:
            result = self.client.auth_test()
            self._bot_id = result.get('bot_id')
            logger.debug(f"Resolved own bot id: {self._bot_id}")
        return self._bot_id

    def open_dm(self, user_id: str) -> str:
        """Open (or reuse) a direct message conversation with a user.

        Raises:
            SlackApiError: if Slack refuses the request
            MessagePublishError: if the response carries no channel
        """
        result = self.client.conversations_open(users=user_id)
        channel_id = (result.get('channel') or {}).get('id')
        if not result.get('ok') or not channel_id:
            raise MessagePublishError(f"Failed to open DM channel with {user_id}")
        logger.info(f"Opened DM channel: {channel_id}")
        return channel_id

    def purge_bot_messages(self, channel: str) -> PurgeResult:
        """Delete recent messages this app posted in a conversation.

        Best effort: every failure is logged and recorded in the result,
        nothing is raised.
        """
        outcome = PurgeResult()
        logger.info("Attempting to clear previous bot messages...")
        try:
            own_bot_id = self.bot_id()
            history = self.client.conversations_history(channel=channel, limit=HISTORY_LIMIT)
        except SlackApiError as e:
            outcome.error = _slack_error(e)
            if outcome.error == 'missing_scope':
                logger.error("Missing Slack permissions to read conversation history!")
                logger.error(f"Required scopes: {HISTORY_SCOPES}")
                logger.error("Add these scopes in the Slack app configuration, then reinstall the app")
            else:
                logger.error(f"Error clearing previous messages: {outcome.error}")
            logger.info("Continuing without clearing messages...")
            return outcome
        except Exception as e:
            outcome.error = str(e)
            logger.exception(f"Error clearing previous messages: {e}")
            logger.info("Continuing without clearing messages...")
            return outcome

        if not own_bot_id:
            logger.warning("Could not resolve this app's bot id; skipping message cleanup")
            outcome.error = 'unknown_bot_id'
            return outcome

        messages = history.get('messages') or []
        bot_messages = [m for m in messages if m.get('bot_id') == own_bot_id and m.get('ts')]

        for message in bot_messages:
            ts = message['ts']
            try:
                self.client.chat_delete(channel=channel, ts=ts)
                outcome.deleted.append(ts)
                logger.info(f"Deleted message: {ts}")
            except SlackApiError as e:
                outcome.failed.append(ts)
                logger.warning(f"Could not delete message {ts}: {_slack_error(e)}")
            except Exception as e:
                outcome.failed.append(ts)
                logger.exception(f"Could not delete message {ts}: {e}")

        logger.info(f"Cleared {len(outcome.deleted)} of {len(bot_messages)} previous bot messages")
        return outcome

    def post_message(self, message: Dict[str, Any]) -> str:
        """Post a new message and return its timestamp.

        Args:
            message: chat.postMessage arguments (channel, text, optional blocks)

        Raises:
            MessagePublishError: if Slack does not accept the message
        """
        try:
            result = self.client.chat_postMessage(**message)
        except SlackApiError as e:
            raise MessagePublishError(f"Failed to send message: {_slack_error(e)}") from e

        if not result.get('ok'):
            raise MessagePublishError(f"Failed to send message: {result.get('error')}")
        logger.info(f"Posted message {result.get('ts')} to {message.get('channel')}")
        return result.get('ts')

    def update_message(self, channel: str, ts: str, blocks: List[Dict[str, Any]], text: str) -> bool:
        """Edit an existing message in place.

        Returns:
            True if updated, False otherwise (failures are logged only)
        """
        try:
            result = self.client.chat_update(channel=channel, ts=ts, blocks=blocks, text=text)
        except SlackApiError as e:
            logger.error(f"Failed to update message {ts}: {_slack_error(e)}")
            return False
        except Exception as e:
            logger.exception(f"Failed to update message {ts}: {e}")
            return False
        if not result.get('ok'):
            logger.error(f"Failed to update message {ts}: {result.get('error')}")
            return False
        logger.info(f"Updated message {ts} in {channel}")
        return True


# Global singleton instance
_default_notifier: Optional[SlackNotifier] = None


def get_notifier() -> SlackNotifier:
    """Get or create the default SlackNotifier instance."""
    global _default_notifier
    if _default_notifier is None:
        _default_notifier = SlackNotifier()
    return _default_notifier
