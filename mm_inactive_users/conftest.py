import time

import pytest
import requests

from mm_inactive_users.config_loader import Settings
from mm_inactive_users.users import MS_PER_DAY

ENV_VARS = ("MM_URL", "MM_PORT", "MM_SCHEME", "MM_TOKEN", "MM_DEBUG")


class FakeClient:
    """Stands in for MattermostClient, serving canned pages and recording calls."""

    def __init__(self, pages=None, team_found=True, teams=None, fail_for=()):
        self.pages = list(pages or [])
        self.team_found = team_found
        self.teams = teams or []
        self.fail_for = set(fail_for)
        self.calls = []

    def get_team_by_name(self, name):
        self.calls.append(("get_team_by_name", name))
        return {"id": "team-id", "name": name} if self.team_found else None

    def get_teams(self):
        self.calls.append(("get_teams",))
        return self.teams

    def get_team_users_page(self, team_id, page, per_page):
        self.calls.append(("page", page))
        if page < len(self.pages):
            result = self.pages[page]
            if isinstance(result, Exception):
                raise result
            return result
        return []

    def _act(self, name, user_id):
        self.calls.append((name, user_id))
        if user_id in self.fail_for:
            raise requests.exceptions.ConnectionError(f"connection refused for {user_id}")
        return {"status": "OK"}

    def deactivate_user(self, user_id):
        return self._act("deactivate_user", user_id)

    def disable_user(self, user_id):
        return self._act("disable_user", user_id)

    def delete_user(self, user_id):
        return self._act("delete_user", user_id)

    @property
    def pages_requested(self):
        return [call[1] for call in self.calls if call[0] == "page"]

    @property
    def action_calls(self):
        return [call for call in self.calls if call[0] in ("deactivate_user", "disable_user", "delete_user")]


def now_ms():
    return int(time.time() * 1000)


def make_user(user_id, days, now=None, roles="system_user", delete_at=0, **extra):
    """Builds an API user object last active `days` days (plus an hour) before now."""
    now = now_ms() if now is None else now
    user = {
        "id": user_id,
        "username": f"user_{user_id}",
        "email": f"{user_id}@example.com",
        "first_name": "First",
        "last_name": user_id.capitalize(),
        "last_activity_at": now - days * MS_PER_DAY - 60 * 60 * 1000,
        "delete_at": delete_at,
        "roles": roles,
    }
    user.update(extra)
    return user


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings():
    def make(**overrides):
        values = {"url": "chat.example.org", "token": "secret-token", "team": "myteam"}
        values.update(overrides)
        return Settings(**values)

    return make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def keypresses(monkeypatch):
    """Feeds canned answers to input() and records the prompts shown."""
    prompts = []
    answers = []

    def fake_input(prompt=""):
        prompts.append(prompt)
        if not answers:
            raise EOFError
        return answers.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)

    def feed(*values):
        answers.extend(values)
        return prompts

    return feed
