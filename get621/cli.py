"""get621 CLI — search e621/e926 posts and pools from the command line."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from get621 import __version__
from get621.client import check_limit, fetch_pool, search
from get621.config import Settings, load_settings
from get621.errors import Get621Error, InvalidArgumentError
from get621.log import configure_logging, err_console
from get621.presenter import OutputMode, describe_relationships, output_posts, save_posts
from get621.resolver import TraversalMode, resolve
from get621.session import ApiSession

console = Console()

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def parse_pool_id(words: tuple[str, ...] | list[str]) -> int:
    """The single numeric pool ID expected in pool mode."""
    if len(words) != 1:
        raise InvalidArgumentError("Pool mode expects exactly one pool ID")
    word = words[0]
    if not (word.isascii() and word.isdigit()) or int(word) == 0:
        raise InvalidArgumentError(f"Invalid pool ID: {word!r}")
    return int(word)


def select_traversal(parents: bool, children: bool) -> TraversalMode:
    if parents and children:
        raise InvalidArgumentError("--parents and --children cannot be used together")
    if parents:
        return TraversalMode.PARENTS
    if children:
        return TraversalMode.CHILDREN
    return TraversalMode.NONE


def select_output(verbose: bool, json_output: bool, raw_output: bool) -> OutputMode:
    chosen = [
        mode
        for flag, mode in (
            (verbose, OutputMode.VERBOSE),
            (json_output, OutputMode.JSON),
            (raw_output, OutputMode.RAW),
        )
        if flag
    ]
    if len(chosen) > 1:
        raise InvalidArgumentError("Only one of --verbose, --json and --output can be used")
    return chosen[0] if chosen else OutputMode.IDS


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "-V", "--version", prog_name="get621")
@click.option("-P", "--pool", "pool_mode", is_flag=True, help="Fetch every post of the given pool ID (ordered)")
@click.option("-p", "--parents", is_flag=True, help="Take the parent post of each result, if any")
@click.option("-c", "--children", is_flag=True, help="Take the children of each result")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output about the results")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output JSON info about the posts")
@click.option("-o", "--output", "raw_output", is_flag=True, help="Download the first post and write it to stdout")
@click.option("-s", "--save", is_flag=True, help="Download every result to <dest>/<post_id>.<ext>")
@click.option(
    "-d", "--dest",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory where --save writes files",
)
@click.option("-l", "--limit", type=int, default=1, show_default=True, help="Maximum search result count (1-320)")
@click.option("-u", "--url", default=None, help="Server root, overrides --nsfw [env: GET621_URL]")
@click.option("--nsfw/--sfw", default=None, help="Use e621 instead of e926 [env: GET621_NSFW]")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="YAML settings file")
@click.option("--debug", is_flag=True, help="Log every request")
@click.argument("tags", nargs=-1)
def main(
    pool_mode: bool,
    parents: bool,
    children: bool,
    verbose: bool,
    json_output: bool,
    raw_output: bool,
    save: bool,
    dest: Path,
    limit: int,
    url: str | None,
    nsfw: bool | None,
    config_path: str | None,
    debug: bool,
    tags: tuple[str, ...],
):
    """E621/926 command line tool.

    TAGS are search tags, joined with spaces. In pool mode (-P) the only
    argument is a pool ID. Put tags starting with '-' after '--'.
    """
    configure_logging(debug)

    try:
        traversal_mode = select_traversal(parents, children)
        out = select_output(verbose, json_output, raw_output)
        settings = load_settings(config_path, overrides={"url": url, "nsfw": nsfw})
        if out is OutputMode.RAW:
            # stdout can only carry one file
            limit = 1
        check_limit(limit)
        pool_id = parse_pool_id(tags) if pool_mode else None
    except InvalidArgumentError as e:
        raise click.UsageError(str(e))

    try:
        with ApiSession.from_settings(settings) as session:
            _run(session, settings, tags, limit, pool_id, traversal_mode, out, save, dest)
    except Get621Error as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)


def _run(
    session: ApiSession,
    settings: Settings,
    tags: tuple[str, ...],
    limit: int,
    pool_id: int | None,
    traversal: TraversalMode,
    out: OutputMode,
    save: bool,
    dest: Path,
) -> None:
    verbose = out is OutputMode.VERBOSE

    pool = None
    if pool_id is not None:
        pool = fetch_pool(session, pool_id, max_pages=settings.max_pool_pages)
        results = list(pool.posts)
    else:
        results = search(session, tags, limit)

    if verbose and traversal is not TraversalMode.NONE:
        for line in describe_relationships(results, traversal):
            console.print(line, markup=False, highlight=False)
        console.print()

    posts = resolve(session, results, traversal)

    # once traversed, the pool's own JSON no longer describes the output
    shown_pool = pool if verbose or traversal is TraversalMode.NONE else None
    output_posts(posts, out, session=session, pool=shown_pool, console=console)

    if save:
        save_posts(session, posts, dest, pool_id=pool_id, console=console if verbose else None)


if __name__ == "__main__":
    main()
