"""Render resolved posts and pools, and save their files to disk."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Sequence

import click
from rich.console import Console
from rich.markup import escape

from get621.errors import FileSystemError, NetworkError
from get621.models import Pool, Post, TypedTags
from get621.resolver import TraversalMode
from get621.session import ApiSession

logger = logging.getLogger(__name__)

TIME_FORMAT = "%a %b %d %H:%M:%S %Y"


class OutputMode(Enum):
    """How results are written to stdout."""

    IDS = "ids"
    VERBOSE = "verbose"
    JSON = "json"
    RAW = "raw"


# ---------------------------------------------------------------------------
# Text rendering
# ---------------------------------------------------------------------------


def _join_names(names: Sequence[str]) -> str:
    """``a``, ``a and b``, ``a, b and c``."""
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " and " + names[-1]


def format_post(post: Post) -> str:
    """Multi-line human description of a post."""
    if post.is_deleted:
        reason = post.del_reason or "no reason given"
        lines = [f"#{post.id} (deleted: {reason})"]
    elif post.artists:
        lines = [f"#{post.id} by {_join_names(post.artists)}"]
    else:
        lines = [f"#{post.id} by {post.author}"]

    lines += [
        f"Rating: {post.rating.label}",
        f"Score: {post.score}",
        f"Favs: {post.fav_count}",
    ]
    if post.file_ext:
        lines.append(f"Type: {post.file_ext}")
    lines.append(f"Created at: {post.created_at.strftime(TIME_FORMAT)}")

    if isinstance(post.tags, TypedTags):
        lines.append("Tags:")
        for category, tags in post.tags.by_category():
            if tags:
                lines.append(f"- {category.capitalize()}: {' '.join(tags)}")
    else:
        lines.append(f"Tags (untyped): {' '.join(post.tags.tags)}")

    if post.parent_id is not None:
        lines.append(f"Parent: #{post.parent_id}")
    if post.children:
        lines.append("Children: " + ", ".join(f"#{c}" for c in post.children))

    lines.append(f"Description: {post.description}")
    return "\n".join(lines)


def format_pool(pool: Pool) -> str:
    """Multi-line human description of a pool's metadata."""
    count = str(pool.post_count)
    if not pool.is_complete:
        count += f" ({len(pool.posts)} fetched)"

    return "\n".join([
        f"Pool #{pool.id} by user #{pool.user_id}",
        f"Name: {pool.display_name}",
        f"Active: {'Yes' if pool.is_active else 'No'}",
        f"Locked: {'Yes' if pool.is_locked else 'No'}",
        f"Post count: {count}",
        f"Last updated: {pool.updated_at.strftime(TIME_FORMAT)}",
        f"Description: {pool.description}",
    ])


def describe_relationships(posts: Sequence[Post], mode: TraversalMode) -> list[str]:
    """One line per post telling what the traversal will fetch for it."""
    lines = []
    for post in posts:
        if mode is TraversalMode.PARENTS:
            if post.parent_id is not None:
                lines.append(f"#{post.parent_id} is the parent of #{post.id}")
            else:
                lines.append(f"#{post.id} doesn't have a parent.")
        elif mode is TraversalMode.CHILDREN:
            if not post.children:
                lines.append(f"#{post.id} doesn't have any children.")
            elif len(post.children) == 1:
                lines.append(f"#{post.children[0]} is the only child of #{post.id}")
            else:
                ids = ", ".join(f"#{c}" for c in post.children)
                lines.append(f"Children of #{post.id}: {ids}")
    return lines


def posts_json(posts: Sequence[Post]) -> str:
    """A JSON array of the posts exactly as the server sent them."""
    return "[" + ",".join(p.raw for p in posts) + "]"


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def output_posts(
    posts: Sequence[Post],
    mode: OutputMode,
    session: ApiSession | None = None,
    pool: Pool | None = None,
    console: Console | None = None,
    stdout: BinaryIO | None = None,
) -> None:
    """Write *posts* to stdout in the requested mode.

    RAW mode needs a *session* to download the file, and writes only the
    first post that has one.
    """
    if mode is OutputMode.IDS:
        for post in posts:
            click.echo(post.id)

    elif mode is OutputMode.JSON:
        click.echo(pool.raw if pool is not None else posts_json(posts))

    elif mode is OutputMode.VERBOSE:
        console = console or Console()
        if pool is not None:
            console.print(format_pool(pool), markup=False, highlight=False)
            console.print()
        if not posts:
            console.print("No posts matched your search.")
            return
        for i, post in enumerate(posts):
            if i:
                console.rule(style="dim")
            console.print(format_post(post), markup=False, highlight=False)

    elif mode is OutputMode.RAW:
        if session is None:
            raise ValueError("RAW output requires a session to download files")
        stdout = stdout or click.get_binary_stream("stdout")
        downloadable = [post for post in posts if post.downloadable]
        if len(downloadable) < len(posts):
            logger.warning(
                "%d post(s) have no downloadable file, skipping", len(posts) - len(downloadable)
            )
        if len(downloadable) > 1:
            # stdout can only carry one file
            logger.warning("Writing only #%d out of %d posts", downloadable[0].id, len(downloadable))
        if downloadable:
            session.download(downloadable[0].file_url, stdout)
        stdout.flush()


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------


def post_filename(post: Post, pool_id: int | None = None, index: int | None = None) -> str:
    """``<id>.<ext>``, or ``<pool>-<index>_<id>.<ext>`` for pool members."""
    name = f"{post.id}.{post.file_ext or 'bin'}"
    if pool_id is not None:
        name = f"{pool_id}-{index}_{name}"
    return name


def _open_destination(path: Path) -> BinaryIO:
    try:
        return open(path, "wb")
    except OSError as e:
        raise FileSystemError(f"Couldn't open the file: {path} ({e.strerror})", path=str(path)) from e


def save_posts(
    session: ApiSession,
    posts: Sequence[Post],
    dest: str | Path = ".",
    pool_id: int | None = None,
    console: Console | None = None,
) -> list[Path]:
    """Download the file of each post into *dest*; return the written paths.

    Deleted posts are skipped. A destination that cannot be created or
    written is logged and skipped; network errors abort the batch.
    """
    dest = Path(dest)
    saved = []

    for index, post in enumerate(posts, start=1):
        if not post.downloadable:
            logger.info("#%d has no downloadable file, not saving", post.id)
            continue

        path = dest / post_filename(post, pool_id, index)
        try:
            f = _open_destination(path)
        except FileSystemError as e:
            logger.warning("%s", e)
            continue

        try:
            with f:
                size = session.download(post.file_url, f)
        except NetworkError:
            path.unlink(missing_ok=True)
            raise
        except OSError as e:
            path.unlink(missing_ok=True)
            error = FileSystemError(f"Couldn't write the file: {path} ({e.strerror})", path=str(path))
            logger.warning("%s", error)
            continue

        saved.append(path)
        if console is not None:
            console.print(f"  [green]Saved[/] #{post.id} -> {escape(str(path))} ({size} bytes)")

    return saved
