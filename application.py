import logging
import threading

from relay.config import get_config
from relay.dispatch import send_daily_tasks
from slack_interactive import app

logger = logging.getLogger(__name__)


def _send_on_start():
    try:
        send_daily_tasks()
    except Exception:
        logger.exception("Daily task send on startup failed:")


def main():
    config = get_config()
    logger.info(f"Nozbe Project ID: {config.nozbe_project_id}")
    logger.info(f"Slack User ID: {config.slack_user_id}")
    logger.info(f"Endpoints: http://localhost:{config.port}/health, "
                f"http://localhost:{config.port}/trigger, "
                f"http://localhost:{config.port}/slack/events")

    if config.run_on_start:
        threading.Thread(target=_send_on_start, daemon=True).start()

    app.run(host='0.0.0.0', port=config.port)


if __name__ == "__main__":
    main()
