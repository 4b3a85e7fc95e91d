"""Post search, by-ID lookup and pool retrieval.

Every function takes an :class:`~get621.session.ApiSession`; the session
decides where requests go and enforces the cooldown.
"""

from __future__ import annotations

import logging
from typing import Sequence

from get621.config import DEFAULT_MAX_POOL_PAGES
from get621.errors import InvalidArgumentError, MappingError, NotFoundError
from get621.mapper import map_pool, map_post, page_posts
from get621.models import Pool, Post
from get621.session import ApiSession

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "/post/index.json"
POOL_ENDPOINT = "/pool/show.json"

MIN_LIMIT = 1
MAX_LIMIT = 320

DEFAULT_ORDER = "order:random"
# Queries with this many tags or more are assumed specific enough
ORDER_INJECTION_THRESHOLD = 5


def check_limit(limit: int) -> int:
    if not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise InvalidArgumentError(
            f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}, got {limit}"
        )
    return limit


def build_query(tags: Sequence[str]) -> str:
    """Join search tags, appending ``order:random`` to short unordered queries."""
    words = list(tags)
    ordered = any("order:" in tag for tag in words)
    if not ordered and len(words) < ORDER_INJECTION_THRESHOLD:
        words.append(DEFAULT_ORDER)
    return " ".join(words)


def search(session: ApiSession, tags: Sequence[str], limit: int = 1) -> list[Post]:
    """Search posts matching *tags*; an empty result is not an error."""
    check_limit(limit)
    return _search(session, build_query(tags), limit)


def _search(session: ApiSession, query: str, limit: int) -> list[Post]:
    logger.info("Searching %r (limit %d)", query, limit)

    data = session.get_json(
        SEARCH_ENDPOINT,
        params={"limit": limit, "tags": query, "typed_tags": "true"},
    )
    if not isinstance(data, list):
        raise MappingError("Search response should be a JSON array")

    return [map_post(obj) for obj in data]


def get_post(session: ApiSession, post_id: int) -> Post:
    """Fetch a single post through an exact ``id:`` search, left unordered."""
    posts = _search(session, f"id:{post_id}", 1)
    if not posts:
        raise NotFoundError(f"Post #{post_id} not found.")
    return posts[0]


def fetch_pool(
    session: ApiSession,
    pool_id: int,
    max_pages: int = DEFAULT_MAX_POOL_PAGES,
) -> Pool:
    """Fetch a pool's metadata and every one of its posts, page by page.

    Pages are requested from 1 upward until one comes back empty, or until
    *max_pages* pages have been read.

    Raises:
        NotFoundError: the server reported the pool as missing.
    """
    first = session.get_json(POOL_ENDPOINT, params={"id": pool_id, "page": 1})
    if isinstance(first, dict) and first.get("success") is False:
        reason = first.get("reason") if isinstance(first.get("reason"), str) else ""
        raise NotFoundError(reason or f"Pool #{pool_id} not found.", reason=reason)

    post_objects: list = []
    posts = page_posts(first)
    page = 1
    while posts:
        post_objects.extend(posts)
        logger.info("Pool #%d: page %d, %d posts so far", pool_id, page, len(post_objects))
        if page >= max(max_pages, 1):
            logger.warning(
                "Pool #%d: stopped after %d pages without reaching an empty page",
                pool_id,
                page,
            )
            break
        page += 1
        posts = page_posts(
            session.get_json(POOL_ENDPOINT, params={"id": pool_id, "page": page})
        )

    pool = map_pool(pool_id, first, post_objects)
    if not pool.is_complete:
        logger.warning(
            "Pool #%d: server reports %d posts but %d were fetched",
            pool_id,
            pool.post_count,
            len(pool.posts),
        )
    return pool
