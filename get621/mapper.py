"""Map decoded JSON from the API onto :mod:`get621.models` records.

The API is loosely typed, so every field read here is checked. A missing
required field or a value of the wrong JSON type raises
:class:`~get621.errors.MappingError` instead of being defaulted; the only
defaults are the documented ones (null parent, null delreason, absent
sources, absent media fields on deleted posts).
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

from get621.errors import MappingError
from get621.models import (
    Pool,
    Post,
    PostRating,
    PostStatus,
    Tags,
    TypedTags,
    UntypedTags,
)

_MISSING = object()

_STATUSES = {
    "active": PostStatus.ACTIVE,
    "flagged": PostStatus.FLAGGED,
    "pending": PostStatus.PENDING,
}


# ---------------------------------------------------------------------------
# Field accessors
# ---------------------------------------------------------------------------


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_int(value: Any) -> bool:
    # JSON booleans decode to bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def _get(obj: dict, key: str, path: str) -> Any:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        raise MappingError(f"Missing field '{path}{key}'", field=path + key)
    return value


def _int(obj: dict, key: str, path: str = "") -> int:
    value = _get(obj, key, path)
    if not _is_int(value):
        raise MappingError(
            f"Field '{path}{key}' should be an integer, got {_type_name(value)}",
            field=path + key,
        )
    return value


def _str(obj: dict, key: str, path: str = "") -> str:
    value = _get(obj, key, path)
    if not isinstance(value, str):
        raise MappingError(
            f"Field '{path}{key}' should be a string, got {_type_name(value)}",
            field=path + key,
        )
    return value


def _bool(obj: dict, key: str, path: str = "") -> bool:
    value = _get(obj, key, path)
    if not isinstance(value, bool):
        raise MappingError(
            f"Field '{path}{key}' should be a boolean, got {_type_name(value)}",
            field=path + key,
        )
    return value


def _optional(obj: dict, key: str, kind: str) -> Any:
    """Read an optional field; absent or null gives None, anything else is checked."""
    value = obj.get(key)
    if value is None:
        return None
    ok = _is_int(value) if kind == "integer" else isinstance(value, str)
    if not ok:
        raise MappingError(
            f"Field '{key}' should be a {kind} or null, got {_type_name(value)}",
            field=key,
        )
    return value


def _timestamp(obj: dict, key: str) -> datetime:
    """Read a ``{"s": seconds, "n": nanoseconds}`` timestamp object."""
    value = _get(obj, key, "")
    if not isinstance(value, dict):
        raise MappingError(
            f"Field '{key}' should be an object, got {_type_name(value)}", field=key
        )
    seconds = _int(value, "s", f"{key}.")
    nanos = value.get("n")
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc)
    if _is_int(nanos):
        stamp += timedelta(microseconds=nanos // 1000)
    return stamp


def _string_list(value: Any, field: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MappingError(f"Field '{field}' should be an array of strings", field=field)
    return tuple(value)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


def parse_status(value: Any) -> PostStatus:
    """Classify a status string; anything unrecognized counts as deleted."""
    if isinstance(value, str):
        return _STATUSES.get(value, PostStatus.DELETED)
    return PostStatus.DELETED


def parse_rating(value: str) -> PostRating:
    """Classify a rating by its first character, falling back to explicit."""
    if value.startswith("s"):
        return PostRating.SAFE
    if value.startswith("q"):
        return PostRating.QUESTIONABLE
    return PostRating.EXPLICIT


# ---------------------------------------------------------------------------
# Tags and relationships
# ---------------------------------------------------------------------------


def parse_tags(value: Any) -> Tags:
    """Detect the tag shape and build the matching variant.

    A string is a space-separated untyped list; empty tokens left by
    repeated spaces are dropped. An object is a typed tag map.
    """
    if isinstance(value, str):
        return UntypedTags(tags=tuple(t for t in value.split(" ") if t))

    if isinstance(value, dict):
        categories = {}
        for name in TypedTags.CATEGORIES:
            entries = value.get(name)
            categories[name] = () if entries is None else _string_list(entries, f"tags.{name}")
        return TypedTags(**categories)

    raise MappingError(
        f"Field 'tags' should be a string or an object, got {_type_name(value)}",
        field="tags",
    )


def parse_children(value: str) -> tuple[int, ...]:
    """Parse a comma-separated list of post IDs."""
    if value == "":
        return ()
    children = []
    for segment in value.split(","):
        if not (segment.isascii() and segment.isdigit()):
            raise MappingError(
                f"Invalid child post ID {segment!r} in 'children'", field="children"
            )
        children.append(int(segment))
    return tuple(children)


def _parent_id(obj: dict) -> int | None:
    value = obj.get("parent_id")
    if value is None:
        return None
    if not _is_int(value):
        raise MappingError(
            f"Field 'parent_id' should be a number or null, got {_type_name(value)}",
            field="parent_id",
        )
    return value


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def map_post(obj: Any) -> Post:
    """Build a :class:`Post` from one decoded JSON post object."""
    if not isinstance(obj, dict):
        raise MappingError(f"A post should be an object, got {_type_name(obj)}")

    sources = obj.get("sources")
    artists = obj.get("artist")
    del_reason = obj.get("delreason")
    if del_reason is not None and not isinstance(del_reason, str):
        raise MappingError("Field 'delreason' should be a string or null", field="delreason")

    return Post(
        id=_int(obj, "id"),
        author=_str(obj, "author"),
        creator_id=_int(obj, "creator_id"),
        created_at=_timestamp(obj, "created_at"),
        status=parse_status(obj.get("status")),
        rating=parse_rating(_str(obj, "rating")),
        tags=parse_tags(_get(obj, "tags", "")),
        score=_int(obj, "score"),
        fav_count=_int(obj, "fav_count"),
        description=_str(obj, "description"),
        artists=_string_list(artists, "artist") if artists is not None else (),
        parent_id=_parent_id(obj),
        children=parse_children(_str(obj, "children")),
        sources=_string_list(sources, "sources") if isinstance(sources, list) else (),
        has_notes=_bool(obj, "has_notes"),
        has_comments=_bool(obj, "has_comments"),
        md5=_optional(obj, "md5", "string"),
        del_reason=del_reason or "",
        file_url=_optional(obj, "file_url", "string"),
        file_ext=_optional(obj, "file_ext", "string"),
        file_size=_optional(obj, "file_size", "integer"),
        width=_optional(obj, "width", "integer"),
        height=_optional(obj, "height", "integer"),
        sample_url=_optional(obj, "sample_url", "string"),
        sample_width=_optional(obj, "sample_width", "integer"),
        sample_height=_optional(obj, "sample_height", "integer"),
        preview_url=_optional(obj, "preview_url", "string"),
        preview_width=_optional(obj, "preview_width", "integer"),
        preview_height=_optional(obj, "preview_height", "integer"),
        raw=json.dumps(obj, ensure_ascii=False, separators=(",", ":")),
    )


def page_posts(page: Any) -> list:
    """Return the ``posts`` array of a pool page."""
    if not isinstance(page, dict):
        raise MappingError(f"A pool page should be an object, got {_type_name(page)}")
    posts = _get(page, "posts", "")
    if not isinstance(posts, list):
        raise MappingError(
            f"Field 'posts' should be an array, got {_type_name(posts)}", field="posts"
        )
    return posts


def map_pool(pool_id: int, first_page: dict, post_objects: list) -> Pool:
    """Build a :class:`Pool` from its first page and every collected post object.

    ``post_objects`` holds the raw post objects of all pages, in order.
    """
    posts = tuple(map_post(p) for p in post_objects)
    raw = dict(first_page)
    raw["posts"] = post_objects

    return Pool(
        id=pool_id,
        name=_str(first_page, "name"),
        description=_str(first_page, "description"),
        is_active=_bool(first_page, "is_active"),
        is_locked=_bool(first_page, "is_locked"),
        post_count=_int(first_page, "post_count"),
        created_at=_timestamp(first_page, "created_at"),
        updated_at=_timestamp(first_page, "updated_at"),
        user_id=_int(first_page, "user_id"),
        posts=posts,
        raw=json.dumps(raw, ensure_ascii=False, separators=(",", ":")),
    )
