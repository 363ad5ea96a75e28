import json
import logging
import threading
from datetime import datetime, timezone

from flask import Flask, request, jsonify
from slack_sdk.signature import SignatureVerifier

from relay.actions import handle_task_complete
from relay.config import get_config
from relay.dispatch import send_daily_tasks

config = get_config()

logging.basicConfig(level=config.log_level, format='%(asctime)s %(levelname)s %(message)s')
app = Flask(__name__)


def _run_in_background(target, *args):
    """Run work after the HTTP response has been sent."""
    threading.Thread(target=target, args=args, daemon=True).start()


def _process_action(payload):
    try:
        handle_task_complete(payload)
    except Exception:
        logging.exception("Error while processing checklist action:")


def _signature_ok() -> bool:
    secret = get_config().slack_signing_secret
    if not secret:
        logging.warning("SLACK_SIGNING_SECRET not set; skipping request signature verification.")
        return True
    verifier = SignatureVerifier(signing_secret=secret)
    return verifier.is_valid(
        body=request.get_data(as_text=True),
        timestamp=request.headers.get('X-Slack-Request-Timestamp', ''),
        signature=request.headers.get('X-Slack-Signature', ''),
    )


# --- Health check endpoint ---
@app.route('/health', methods=['GET'])
def health_check():
    """Read-only health check route for deployment verification."""
    logging.debug("Health check endpoint called.")
    return jsonify({"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}), 200


# --- Trigger the daily task send ---
@app.route('/trigger', methods=['GET'])
def trigger():
    logging.info("Triggering daily task send")
    try:
        send_daily_tasks()
        return jsonify({"success": True, "message": "Daily tasks sent to Slack"}), 200
    except Exception as e:
        logging.exception("Error sending daily tasks:")
        return jsonify({"success": False, "error": str(e)}), 500


# --- Flask endpoint for Slack events and interactivity ---
@app.route('/slack/events', methods=['POST'])
@app.route('/slack/interactivity', methods=['POST'])
def slack_events():
    # Cache the raw body before form parsing so the signature can be checked
    request.get_data()
    if not _signature_ok():
        logging.warning("Rejected Slack request with an invalid signature.")
        return jsonify({"error": "invalid signature"}), 401

    raw_payload = request.form.get('payload')
    if raw_payload is None:
        body = request.get_json(silent=True) or {}
        if body.get('type') == 'url_verification':
            return jsonify({"challenge": body.get('challenge')}), 200
        logging.debug(f"Ignoring Slack event of type {body.get('type')!r}")
        return '', 200

    try:
        payload = json.loads(raw_payload)
    except ValueError:
        logging.exception("Failed to parse payload JSON:")
        return jsonify({"error": "invalid payload"}), 400

    if payload.get('type') != 'block_actions':
        logging.debug(f"Ignoring Slack payload of type {payload.get('type')!r}")
        return '', 200

    logging.info("Received Slack action")
    # Acknowledge first; Slack expects a response within three seconds
    _run_in_background(_process_action, payload)
    return '', 200


if __name__ == "__main__":
    app.run(host='0.0.0.0', port=config.port)
