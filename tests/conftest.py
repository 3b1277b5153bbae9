import json
import math
from typing import Optional

import httpx
import pytest

from blogfront.client import ContentClient
from blogfront.config import SiteConfig
from blogfront.fetcher import RetryPolicy

API_BASE = "https://cms.example/wp/v2"
API_PREFIX = "/wp/v2"


def make_post(post_id: int, slug: Optional[str] = None, **overrides) -> dict:
    payload = {
        "id": post_id,
        "slug": slug or f"post-{post_id}",
        "title": {"rendered": f"Post {post_id}"},
        "excerpt": {"rendered": f"<p>Excerpt for post {post_id}</p>"},
        "content": {"rendered": f"<p>Body of post {post_id}</p>"},
        "date": "2024-05-10T08:00:00",
        "link": f"https://cms.example/post-{post_id}",
        "categories": [1],
        "author": 7,
        "featured_media": 0,
    }
    payload.update(overrides)
    return payload


def make_media(media_id: int, sizes: tuple = ("medium", "medium_large", "large")) -> dict:
    return {
        "id": media_id,
        "source_url": f"https://cdn.example/{media_id}.jpg",
        "alt_text": f"Media {media_id}",
        "media_details": {
            "width": 2400,
            "height": 1600,
            "sizes": {
                name: {
                    "source_url": f"https://cdn.example/{media_id}-{name}.jpg",
                    "width": 300,
                    "height": 200,
                }
                for name in sizes
            },
        },
    }


class FakeContentSource:
    """In-memory WordPress REST API behind an ``httpx.MockTransport``."""

    def __init__(self, posts=(), categories=(), media=()):
        self.posts = list(posts)
        self.categories = list(categories)
        self.media = {entry["id"]: entry for entry in media}
        self.requests: list[httpx.Request] = []
        self._queued: list[tuple[str, Optional[int], object]] = []

    def enqueue(self, route: str, response, *, page: Optional[int] = None) -> None:
        """Serve ``response`` (or raise it, if an exception) once for ``route``."""

        self._queued.append((route, page, response))

    def count(self, route: str) -> int:
        return sum(1 for request in self.requests if self._route(request) == route)

    @staticmethod
    def _route(request: httpx.Request) -> str:
        path = request.url.path[len(API_PREFIX):]
        return "/media" if path.startswith("/media/") else path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._route(request)
        params = request.url.params
        page = int(params.get("page", "1"))

        for index, (queued_route, queued_page, response) in enumerate(self._queued):
            if queued_route == route and queued_page in (None, page):
                del self._queued[index]
                if isinstance(response, Exception):
                    raise response
                return response

        if route == "/posts":
            if "slug" in params:
                return httpx.Response(200, json=[p for p in self.posts if p["slug"] == params["slug"]])
            per_page = int(params.get("per_page", "10"))
            start = (page - 1) * per_page
            total = len(self.posts)
            headers = {
                "X-WP-Total": str(total),
                "X-WP-TotalPages": str(math.ceil(total / per_page)),
            }
            return httpx.Response(200, json=self.posts[start:start + per_page], headers=headers)
        if route == "/categories":
            return httpx.Response(200, json=self.categories)
        if route == "/media":
            media_id = int(request.url.path.rsplit("/", 1)[-1])
            if media_id in self.media:
                return httpx.Response(200, json=self.media[media_id])
            return httpx.Response(404, json={"code": "rest_post_invalid_id"})
        return httpx.Response(404, text=json.dumps({"code": "rest_no_route"}))


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def source():
    return FakeContentSource(
        categories=[
            {"id": 1, "name": "Design", "slug": "design", "count": 4},
            {"id": 2, "name": "Productivity", "slug": "productivity", "count": 2},
            {"id": 3, "name": "Empty", "slug": "empty", "count": 0},
        ]
    )


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def site():
    return SiteConfig(
        origin="https://www.clipbo.red",
        api_base=API_BASE,
        media_batch_delay=0.0,
    )


@pytest.fixture
def make_client(source, sleeper):
    def factory(**kwargs) -> ContentClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(source.handler))
        kwargs.setdefault("policy", RetryPolicy(max_retries=3, base_delay=1.0))
        kwargs.setdefault("sleep", sleeper)
        return ContentClient(API_BASE, http=http, **kwargs)

    return factory


@pytest.fixture
def client(make_client):
    return make_client()
