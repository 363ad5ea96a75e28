"""Shared fixtures: fake Slack WebClient and fake Nozbe HTTP endpoints."""

import pytest
import requests
from slack_sdk.errors import SlackApiError

from relay.config import Config
from relay.slack import SlackNotifier
from relay.tasks_provider import NozbeTasksProvider

BOT_ID = "B_SELF"
DM_CHANNEL = "D123"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else repr(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeNozbe:
    """Stands in for requests.get/put against the Nozbe API."""

    def __init__(self):
        self.tasks_payload = []
        self.get_response = None
        self.get_error = None
        self.put_status = {}
        self.put_error = {}
        self.get_calls = []
        self.put_calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.get_calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.get_error:
            raise self.get_error
        return self.get_response or FakeResponse(200, self.tasks_payload)

    def put(self, url, json=None, headers=None, timeout=None):
        self.put_calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        task_id = (json or {}).get("id")
        if task_id in self.put_error:
            raise self.put_error[task_id]
        return FakeResponse(self.put_status.get(task_id, 200), {"id": task_id, "completed": True})


class FakeWebClient:
    """Records Slack Web API calls and answers like a healthy workspace."""

    def __init__(self):
        self.calls = []
        self.history = []
        self.history_error = None
        self.delete_fail = set()
        self.post_result = None
        self.post_error = None
        self.update_error = None
        self._ts = 0

    def _record(self, method, **kwargs):
        self.calls.append((method, kwargs))

    def calls_to(self, method):
        return [kwargs for name, kwargs in self.calls if name == method]

    def auth_test(self):
        self._record("auth.test")
        return {"ok": True, "bot_id": BOT_ID, "user_id": "U_BOT"}

    def conversations_open(self, users):
        self._record("conversations.open", users=users)
        return {"ok": True, "channel": {"id": DM_CHANNEL}}

    def conversations_history(self, channel, limit):
        self._record("conversations.history", channel=channel, limit=limit)
        if self.history_error:
            raise self.history_error
        return {"ok": True, "messages": list(self.history)}

    def chat_delete(self, channel, ts):
        self._record("chat.delete", channel=channel, ts=ts)
        if ts in self.delete_fail:
            raise SlackApiError("cant_delete_message", {"ok": False, "error": "cant_delete_message"})
        return {"ok": True}

    def chat_postMessage(self, **kwargs):
        self._record("chat.postMessage", **kwargs)
        if self.post_error:
            raise self.post_error
        if self.post_result is not None:
            return self.post_result
        self._ts += 1
        return {"ok": True, "channel": kwargs.get("channel"), "ts": f"1700000000.00000{self._ts}"}

    def chat_update(self, **kwargs):
        self._record("chat.update", **kwargs)
        if self.update_error:
            raise self.update_error
        return {"ok": True, "ts": kwargs.get("ts")}


@pytest.fixture()
def config():
    return Config(
        nozbe_api_url="https://nozbe.test",
        nozbe_api_key="nozbe-key",
        nozbe_client_id="client-1",
        nozbe_project_id="proj1",
        slack_bot_token="xoxb-test",
        slack_user_id="U123",
    )


@pytest.fixture()
def nozbe(monkeypatch):
    fake = FakeNozbe()
    monkeypatch.setattr("relay.tasks_provider.requests.get", fake.get)
    monkeypatch.setattr("relay.tasks_provider.requests.put", fake.put)
    return fake


@pytest.fixture()
def web_client():
    return FakeWebClient()


@pytest.fixture()
def notifier(web_client, config):
    return SlackNotifier(client=web_client, config=config)


@pytest.fixture()
def provider(config):
    return NozbeTasksProvider(config=config)
