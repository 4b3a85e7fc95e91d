"""Typed records for posts and pools returned by the API.

Both records are frozen: a post or pool is built once from JSON and never
patched afterwards. Re-fetching produces a new record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union


class PostStatus(Enum):
    """Moderation state of a post."""

    ACTIVE = "active"
    FLAGGED = "flagged"
    PENDING = "pending"
    DELETED = "deleted"


class PostRating(Enum):
    """Content classification of a post."""

    SAFE = "s"
    QUESTIONABLE = "q"
    EXPLICIT = "e"

    @property
    def label(self) -> str:
        return self.name.capitalize()


# --- Tags ---


@dataclass(frozen=True)
class UntypedTags:
    """Flat tag list, as sent when the server does not categorize tags."""

    tags: tuple[str, ...] = ()

    def flatten(self) -> list[str]:
        return list(self.tags)


@dataclass(frozen=True)
class TypedTags:
    """Tags grouped by category."""

    general: tuple[str, ...] = ()
    artist: tuple[str, ...] = ()
    copyright: tuple[str, ...] = ()
    character: tuple[str, ...] = ()
    species: tuple[str, ...] = ()

    CATEGORIES = ("general", "artist", "copyright", "character", "species")

    def by_category(self) -> list[tuple[str, tuple[str, ...]]]:
        """Return ``(category, tags)`` pairs in display order."""
        return [(name, getattr(self, name)) for name in self.CATEGORIES]

    def flatten(self) -> list[str]:
        return [tag for _, tags in self.by_category() for tag in tags]


Tags = Union[UntypedTags, TypedTags]


# --- Post ---


@dataclass(frozen=True)
class Post:
    """A single media submission."""

    id: int
    author: str
    creator_id: int
    created_at: datetime
    status: PostStatus
    rating: PostRating
    tags: Tags
    score: int
    fav_count: int
    description: str = ""

    artists: tuple[str, ...] = ()
    parent_id: int | None = None
    children: tuple[int, ...] = ()
    sources: tuple[str, ...] = ()

    has_notes: bool = False
    has_comments: bool = False
    md5: str | None = None
    del_reason: str = ""

    # Media (absent on deleted posts)
    file_url: str | None = None
    file_ext: str | None = None
    file_size: int | None = None
    width: int | None = None
    height: int | None = None
    sample_url: str | None = None
    sample_width: int | None = None
    sample_height: int | None = None
    preview_url: str | None = None
    preview_width: int | None = None
    preview_height: int | None = None

    raw: str = field(default="", repr=False, compare=False)

    @property
    def typed_tags(self) -> bool:
        """True when :attr:`tags` is a :class:`TypedTags`."""
        return isinstance(self.tags, TypedTags)

    @property
    def all_tags(self) -> list[str]:
        return self.tags.flatten()

    @property
    def is_deleted(self) -> bool:
        return self.status is PostStatus.DELETED

    @property
    def downloadable(self) -> bool:
        return not self.is_deleted and bool(self.file_url)


# --- Pool ---


@dataclass(frozen=True)
class Pool:
    """An ordered collection of posts."""

    id: int
    name: str
    description: str
    is_active: bool
    is_locked: bool
    post_count: int
    created_at: datetime
    updated_at: datetime
    user_id: int
    posts: tuple[Post, ...] = ()

    raw: str = field(default="", repr=False, compare=False)

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ")

    @property
    def is_complete(self) -> bool:
        """True when every post the server counts was fetched."""
        return len(self.posts) == self.post_count
