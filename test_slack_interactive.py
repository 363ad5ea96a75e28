"""End-to-end tests of the HTTP surface with fake Nozbe and Slack backends."""

import hashlib
import hmac
import json
import time
from dataclasses import replace
from urllib.parse import urlencode

import pytest
import requests

import slack_interactive
from conftest import DM_CHANNEL
from relay.messages import EMPTY_TEXT, TASK_ACTION_ID
from relay.reconcile import remaining_task_ids

SECRET = "signing-secret"


@pytest.fixture()
def client(monkeypatch, config, provider, notifier):
    monkeypatch.setattr("relay.config._default_config", config)
    monkeypatch.setattr("relay.tasks_provider._default_provider", provider)
    monkeypatch.setattr("relay.slack._default_notifier", notifier)
    monkeypatch.setattr(slack_interactive, "_run_in_background", lambda target, *args: target(*args))
    slack_interactive.app.config['TESTING'] = True
    return slack_interactive.app.test_client()


def _action_body(message, selected):
    payload = {
        "type": "block_actions",
        "channel": {"id": message["channel"]},
        "message": {"ts": message["ts"], "blocks": message["blocks"]},
        "actions": [{
            "type": "checkboxes",
            "action_id": TASK_ACTION_ID,
            "selected_options": [{"value": v} for v in selected],
        }],
    }
    return urlencode({"payload": json.dumps(payload)})


def _sign(body, secret=SECRET, timestamp=None):
    timestamp = timestamp or str(int(time.time()))
    digest = hmac.new(secret.encode(), f"v0:{timestamp}:{body}".encode(), hashlib.sha256).hexdigest()
    return {"X-Slack-Request-Timestamp": timestamp, "X-Slack-Signature": f"v0={digest}"}


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "healthy"
    assert "timestamp" in body


def test_trigger_then_check_off_two_tasks(client, nozbe, web_client):
    nozbe.tasks_payload = {"tasks": [
        {"id": "t1", "name": "One"},
        {"id": "t2", "name": "Two"},
        {"id": "t3", "name": "Three", "next": True},
        {"id": "t4", "name": "Four"},
        {"id": "t5", "name": "Five"},
    ]}

    response = client.get('/trigger')

    assert response.status_code == 200
    assert response.get_json()["success"] is True
    posts = web_client.calls_to("chat.postMessage")
    assert len(posts) == 1
    posted = posts[0]
    values = remaining_task_ids(posted["blocks"])
    assert values == ["t3", "t1", "t2"]

    message = dict(posted, ts="1700000000.000001")
    response = client.post('/slack/events', data=_action_body(message, ["t3", "t1"]),
                           content_type='application/x-www-form-urlencoded')

    assert response.status_code == 200
    assert [c["json"]["id"] for c in nozbe.put_calls] == ["t3", "t1"]
    updates = web_client.calls_to("chat.update")
    assert len(updates) == 1
    assert updates[0]["channel"] == DM_CHANNEL
    assert updates[0]["ts"] == "1700000000.000001"
    assert remaining_task_ids(updates[0]["blocks"]) == ["t2"]
    assert len(web_client.calls_to("chat.postMessage")) == 1


def test_trigger_with_no_tasks(client, nozbe, web_client):
    nozbe.tasks_payload = []

    response = client.get('/trigger')

    assert response.status_code == 200
    posts = web_client.calls_to("chat.postMessage")
    assert posts == [{"channel": DM_CHANNEL, "text": EMPTY_TEXT}]


def test_trigger_reports_fatal_errors(client, nozbe, web_client):
    nozbe.get_error = requests.ConnectionError("down")

    response = client.get('/trigger')

    assert response.status_code == 500
    body = response.get_json()
    assert body["success"] is False
    assert body["error"]


def test_trigger_missing_configuration(client, monkeypatch, config):
    monkeypatch.setattr("relay.config._default_config", replace(config, slack_user_id=None))

    response = client.get('/trigger')

    assert response.status_code == 500
    assert "SLACK_USER_ID" in response.get_json()["error"]


def test_invalid_signature_is_rejected(client, monkeypatch, config, nozbe):
    monkeypatch.setattr("relay.config._default_config", replace(config, slack_signing_secret=SECRET))
    message = {"channel": DM_CHANNEL, "ts": "1.1", "blocks": []}
    body = _action_body(message, ["t1"])

    response = client.post('/slack/events', data=body, content_type='application/x-www-form-urlencoded',
                           headers=_sign(body, secret="wrong"))

    assert response.status_code == 401
    assert nozbe.put_calls == []


def test_valid_signature_is_accepted(client, monkeypatch, config, nozbe, web_client):
    monkeypatch.setattr("relay.config._default_config", replace(config, slack_signing_secret=SECRET))
    message = {"channel": DM_CHANNEL, "ts": "1.1", "blocks": [{
        "type": "actions",
        "elements": [{"type": "checkboxes", "action_id": TASK_ACTION_ID,
                      "options": [{"text": {"type": "plain_text", "text": "One"}, "value": "t1"}]}],
    }]}
    body = _action_body(message, ["t1"])

    response = client.post('/slack/events', data=body, content_type='application/x-www-form-urlencoded',
                           headers=_sign(body))

    assert response.status_code == 200
    assert [c["json"]["id"] for c in nozbe.put_calls] == ["t1"]
    assert web_client.calls_to("chat.update")[0]["blocks"][0]["type"] == "section"


def test_url_verification_challenge(client):
    response = client.post('/slack/events', json={"type": "url_verification", "challenge": "abc"})

    assert response.status_code == 200
    assert response.get_json() == {"challenge": "abc"}


def test_acknowledges_before_processing(monkeypatch, client, nozbe):
    queued = []
    monkeypatch.setattr(slack_interactive, "_run_in_background", lambda target, *args: queued.append(args))
    message = {"channel": DM_CHANNEL, "ts": "1.1", "blocks": []}

    response = client.post('/slack/events', data=_action_body(message, ["t1"]),
                           content_type='application/x-www-form-urlencoded')

    assert response.status_code == 200
    assert len(queued) == 1
    assert nozbe.put_calls == []
