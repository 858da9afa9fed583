"""Shared fixtures: an in-memory stand-in for the remote event service."""

import json

import httpx
import pytest

from eventboard.sync import EventTransport

BASE_URL = "http://events.test"


class FakeEventService:
    """Serves ``GET /data`` and ``POST /events`` from an in-memory list."""

    def __init__(self, events: list[dict] | None = None):
        self.events = list(events or [])
        self.read_status = 200
        self.read_body = "db down"
        self.requests: list[httpx.Request] = []

    @property
    def reads(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "GET" and request.url.path == "/data":
            if self.read_status != 200:
                return httpx.Response(self.read_status, text=self.read_body)
            return httpx.Response(200, json={"data": self.events})

        if request.method == "POST" and request.url.path == "/events":
            body = json.loads(request.content)
            if not body.get("title"):
                return httpx.Response(400, text="title is required")
            event = {"id": len(self.events) + 1, **body}
            self.events.append(event)
            return httpx.Response(201, json=event)

        return httpx.Response(404, text="not found")


@pytest.fixture
def event_service():
    """Remote service preloaded with two events."""
    return FakeEventService(
        [
            {"id": 1, "title": "Fall Fest", "location": "Main Quad"},
            {"id": 2, "title": "Winter Market", "date": "2026-12-12"},
        ]
    )


@pytest.fixture
def transport(event_service):
    """EventTransport wired to the fake service."""
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(event_service),
    )
    return EventTransport(BASE_URL, client=client)
