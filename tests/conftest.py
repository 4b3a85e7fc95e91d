"""Shared fixtures: post payload factory and a fake upstream API."""

import httpx
import pytest

from get621.session import ApiSession

BASE_URL = "https://e926.net"


def post_json(post_id: int = 1, **overrides) -> dict:
    """A complete, valid post object as the legacy API sends it."""
    data = {
        "id": post_id,
        "author": "uploader",
        "creator_id": 42,
        "created_at": {"json_class": "Time", "s": 1528200000, "n": 500000000},
        "status": "active",
        "tags": {
            "general": ["solo", "smile"],
            "artist": ["someartist"],
            "copyright": [],
            "character": [],
            "species": ["fox"],
        },
        "artist": ["someartist"],
        "rating": "s",
        "description": "",
        "score": 10,
        "fav_count": 3,
        "parent_id": None,
        "children": "",
        "sources": ["https://example.com/source"],
        "has_notes": False,
        "has_comments": True,
        "md5": "0123456789abcdef0123456789abcdef",
        "file_url": f"https://static1.e926.net/data/{post_id}.png",
        "file_ext": "png",
        "file_size": 2048,
        "width": 800,
        "height": 600,
        "sample_url": f"https://static1.e926.net/data/sample/{post_id}.jpg",
        "sample_width": 400,
        "sample_height": 300,
        "preview_url": f"https://static1.e926.net/data/preview/{post_id}.jpg",
        "preview_width": 150,
        "preview_height": 112,
        "delreason": None,
    }
    data.update(overrides)
    return data


def pool_page(posts: list, **overrides) -> dict:
    """One page of ``pool/show.json``."""
    data = {
        "id": 7,
        "name": "A_Test_Pool",
        "description": "pool description",
        "is_active": True,
        "is_locked": False,
        "post_count": len(posts),
        "created_at": {"json_class": "Time", "s": 1500000000, "n": 0},
        "updated_at": {"json_class": "Time", "s": 1530000000, "n": 0},
        "user_id": 99,
        "posts": posts,
    }
    data.update(overrides)
    return data


class FakeApi:
    """In-process stand-in for the upstream server, served through httpx.MockTransport.

    ``events`` interleaves requests and cooldown sleeps in the order they
    happened.
    """

    def __init__(self):
        self.posts: dict[int, dict] = {}
        self.search_results: list = []
        self.pool_pages: dict[int, dict] = {}
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.events: list[str] = []
        self.sleeps: list[float] = []

    def add_posts(self, *posts: dict) -> None:
        for p in posts:
            self.posts[p["id"]] = p

    def _sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.events.append("sleep")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.events.append("request")
        path = request.url.path

        if path == "/post/index.json":
            first = request.url.params.get("tags", "").split(" ")[0]
            if first.startswith("id:"):
                post = self.posts.get(int(first[3:]))
                return httpx.Response(200, json=[post] if post else [])
            return httpx.Response(200, json=self.search_results)

        if path == "/pool/show.json":
            page = int(request.url.params["page"])
            if not self.pool_pages:
                return httpx.Response(200, json={"success": False, "reason": "not found"})
            return httpx.Response(200, json=self.pool_pages.get(page, {"posts": []}))

        if str(request.url) in self.files:
            return httpx.Response(200, content=self.files[str(request.url)])

        return httpx.Response(404, json={"success": False, "reason": "not found"})

    def session(self, cooldown: float = 1.2) -> ApiSession:
        return ApiSession(
            BASE_URL,
            cooldown=cooldown,
            transport=httpx.MockTransport(self.handler),
            sleep=self._sleep,
        )

    def search_queries(self) -> list[str]:
        return [
            r.url.params["tags"] for r in self.requests if r.url.path == "/post/index.json"
        ]


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def session(api):
    with api.session() as s:
        yield s
