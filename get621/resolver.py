"""Relationship traversal — replace posts by their parents or children.

The API has no batch lookup by ID, so every related post costs one
rate-limited request.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from get621.client import get_post
from get621.models import Post
from get621.session import ApiSession

logger = logging.getLogger(__name__)


class TraversalMode(Enum):
    """Which related posts to take from a result set."""

    NONE = "none"
    PARENTS = "parents"
    CHILDREN = "children"


def related_ids(post: Post, mode: TraversalMode) -> list[int]:
    """IDs of the posts *post* contributes under *mode*, in fetch order."""
    if mode is TraversalMode.PARENTS:
        return [post.parent_id] if post.parent_id is not None else []
    if mode is TraversalMode.CHILDREN:
        return list(post.children)
    return []


def resolve(session: ApiSession, posts: Iterable[Post], mode: TraversalMode) -> list[Post]:
    """Map *posts* to their related posts, preserving input order.

    Posts without a parent (or without children) contribute nothing. Any
    failed lookup aborts the whole resolution.
    """
    if mode is TraversalMode.NONE:
        return list(posts)

    resolved = []
    for post in posts:
        ids = related_ids(post, mode)
        if ids:
            logger.info("#%d: fetching %s %s", post.id, mode.value, ", ".join(map(str, ids)))
        for post_id in ids:
            resolved.append(get_post(session, post_id))
    return resolved
