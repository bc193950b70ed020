import asyncio
import copy

import pytest
from aiohttp import web

from episode_updater.exceptions import ApiError
from episode_updater.models.field import build_default_schema
from episode_updater.models.settings import ENV_KEYS

EPISODE_PREFIX = "spotify:episode:"


class FakeCreatorsApi:
    """Minimal aiohttp app mimicking the overview and update endpoints."""

    def __init__(self, episodes, update_status=200, overview_body=None, overview_delay=0.0):
        self.episodes = episodes
        self.update_status = update_status
        self.overview_body = overview_body
        self.overview_delay = overview_delay
        self.requests = []

    def make_app(self):
        app = web.Application()
        app.router.add_get("/pod/api/proxy/v3/episodes/{uri}/overview", self.overview)
        app.router.add_post("/pod/api/proxy/v3/episodes/{uri}/update", self.update)
        return app

    async def overview(self, request):
        self.requests.append(("GET", request.match_info["uri"], request.headers.get("Cookie"), dict(request.query), None))
        if self.overview_delay:
            await asyncio.sleep(self.overview_delay)
        if self.overview_body is not None:
            return web.Response(text=self.overview_body, content_type="application/json")
        episode_id = request.match_info["uri"].removeprefix(EPISODE_PREFIX)
        if episode_id not in self.episodes:
            return web.json_response({"error": "not found"}, status=404)
        return web.json_response(self.episodes[episode_id])

    async def update(self, request):
        body = await request.json()
        self.requests.append(("POST", request.match_info["uri"], request.headers.get("Cookie"), dict(request.query), body))
        if self.update_status != 200:
            return web.Response(status=self.update_status, text="x" * 150 + " rejected")
        episode_id = request.match_info["uri"].removeprefix(EPISODE_PREFIX)
        self.episodes[episode_id].update(body)
        return web.json_response({"ok": True})


class FakeEpisodeClient:
    """In-memory stand-in for EpisodeApiClient that merges updates like the API does."""

    def __init__(self, episodes, update_error=None, fail_fetch_after_update=False):
        self.episodes = {key: copy.deepcopy(value) for key, value in episodes.items()}
        self.update_error = update_error
        self.fail_fetch_after_update = fail_fetch_after_update
        self.fetch_calls = []
        self.update_calls = []

    async def fetch(self, episode_id):
        self.fetch_calls.append(episode_id)
        if self.fail_fetch_after_update and self.update_calls:
            raise ApiError(500, episode_id, "internal error")
        if episode_id not in self.episodes:
            raise ApiError(404, episode_id, "not found")
        return copy.deepcopy(self.episodes[episode_id])

    async def update(self, episode_id, payload):
        self.update_calls.append((episode_id, payload))
        if self.update_error is not None:
            raise self.update_error
        self.episodes[episode_id].update(payload)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def schema():
    return build_default_schema()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def episode_state():
    return {
        "title": "Pilot",
        "description": "The first one",
        "publishOn": "2024-01-01T00:00:00.000Z",
        "podcastEpisodeNumber": 1,
        "podcastSeasonNumber": 1,
        "podcastEpisodeType": "full",
        "isPublished": True,
        "podcastEpisodeIsExplicit": False,
        "isDraft": False,
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Process environment overrides .env values; keep tests isolated from it
    for key in ENV_KEYS.values():
        monkeypatch.delenv(key, raising=False)
