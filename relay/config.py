"""Environment-sourced configuration.

Values are read once at startup (after loading a local .env file) and are
read-only afterwards.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_NOZBE_API_URL = "https://api.nozbe.com:3000"
DEFAULT_NOZBE_CLIENT_ID = "434314ce3ef0e9a6d362111a282714fffb4a5759"
DEFAULT_NOZBE_PROJECT_ID = "abc"
DEFAULT_PORT = 10000


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing."""


@dataclass(frozen=True)
class Config:
    nozbe_api_url: str = DEFAULT_NOZBE_API_URL
    nozbe_api_key: Optional[str] = None
    nozbe_client_id: str = DEFAULT_NOZBE_CLIENT_ID
    nozbe_project_id: str = DEFAULT_NOZBE_PROJECT_ID
    slack_bot_token: Optional[str] = None
    slack_signing_secret: Optional[str] = None
    slack_user_id: Optional[str] = None
    port: int = DEFAULT_PORT
    run_on_start: bool = False
    task_api_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a Config from environment variables."""
        return cls(
            nozbe_api_url=os.getenv('NOZBE_API_URL', DEFAULT_NOZBE_API_URL).rstrip('/'),
            nozbe_api_key=os.getenv('NOZBE_API_KEY') or None,
            nozbe_client_id=os.getenv('NOZBE_CLIENT_ID', DEFAULT_NOZBE_CLIENT_ID),
            nozbe_project_id=os.getenv('NOZBE_PROJECT_ID', DEFAULT_NOZBE_PROJECT_ID),
            slack_bot_token=os.getenv('SLACK_BOT_TOKEN') or None,
            slack_signing_secret=os.getenv('SLACK_SIGNING_SECRET') or None,
            slack_user_id=os.getenv('SLACK_USER_ID') or None,
            port=int(os.getenv('PORT', str(DEFAULT_PORT))),
            run_on_start=os.getenv('RUN_ON_START', '').strip().lower() == 'true',
            task_api_timeout=float(os.getenv('TASK_API_TIMEOUT', '10')),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )

    def require_task_api(self) -> None:
        """Raise ConfigurationError unless the Nozbe API key is set."""
        if not self.nozbe_api_key:
            raise ConfigurationError(
                "Missing NOZBE_API_KEY. Please obtain it from the 'Settings' section in the Nozbe app"
            )

    def require_slack(self) -> None:
        """Raise ConfigurationError unless the Slack bot token and target user are set."""
        missing: List[str] = []
        if not self.slack_bot_token:
            missing.append('SLACK_BOT_TOKEN')
        if not self.slack_user_id:
            missing.append('SLACK_USER_ID')
        if missing:
            raise ConfigurationError(
                f"Missing required Slack environment variables ({' or '.join(missing)})"
            )


# Global singleton instance
_default_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the process-wide Config."""
    global _default_config
    if _default_config is None:
        _default_config = Config.from_env()
    return _default_config
