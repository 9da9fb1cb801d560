# batwiki/cli/generic.py
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any

import typer
from rich import print
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from batwiki import config
from batwiki.cache import CachingWikiClient
from batwiki.datatypes import ArticleDetail, SearchHit
from batwiki.discovery import ArticleDiscoveryService
from batwiki.errors import ArticleNotFoundError, UpstreamError, ValidationError
from batwiki.feed import TopicFeed
from batwiki.logging import configure_logging
from batwiki.wiki_client import WikiClient

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
) -> None:
    """
    Browse Batman articles on Wikipedia from the terminal.
    """
    configure_logging(logging.DEBUG if verbose else logging.WARNING, json_output=json_logs)


def _service(*, cached: bool = False) -> ArticleDiscoveryService:
    client = CachingWikiClient(WikiClient()) if cached else WikiClient()
    return ArticleDiscoveryService(client)


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _hit_json(hit: SearchHit) -> dict[str, Any]:
    # never hand out the raw snippet markup
    return {**asdict(hit), "snippet": hit.clean_snippet, "url": hit.url}


def _fail(exc: Exception) -> typer.Exit:
    """
    Print a friendly panel and pick the exit code:
    2 for final answers (not found, bad input), 1 for failures worth retrying.
    """
    if isinstance(exc, ArticleNotFoundError):
        print(Panel.fit(f"[bold red]Article not found:[/bold red] {escape(exc.title)}"))
        return typer.Exit(code=2)
    if isinstance(exc, ValidationError):
        print(Panel.fit(f"[bold red]Invalid input:[/bold red] {escape(str(exc))}"))
        return typer.Exit(code=2)
    print(
        Panel.fit(
            f"[bold red]{escape(str(exc))}[/bold red]\n"
            "Check your internet connection and try again."
        )
    )
    return typer.Exit(code=1)


def _articles_table(hits: list[SearchHit], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Title")
    table.add_column("Updated")
    table.add_column("Words", justify="right")
    table.add_column("Snippet")

    for i, h in enumerate(hits, start=1):
        table.add_row(
            str(i),
            escape(h.title),
            h.formatted_timestamp,
            f"{h.word_count:,}",
            escape(h.clean_snippet.replace("\n", " ")[:160]),
        )
    return table


@app.command()
def articles(
    limit: int = typer.Option(
        config.DEFAULT_ARTICLE_LIMIT, "--limit", "-n", help="Search page size before filtering"
    ),
    json_out: bool = typer.Option(False, "--json", help="Emit JSON instead of table"),
) -> None:
    """
    List Batman-related articles, in Wikipedia's relevance order.
    """
    try:
        hits = asyncio.run(_service().find_topic_articles(limit))
    except (UpstreamError, ValidationError) as exc:
        raise _fail(exc)

    if json_out:
        _emit_json([_hit_json(h) for h in hits])
        return

    if not hits:
        print(Panel.fit("[bold yellow]No Batman articles found.[/bold yellow] Try again later."))
        return

    print(_articles_table(hits, f"Batman articles ({len(hits)})"))
    print("[dim]Tip: use[/dim] [bold]article TITLE[/bold] [dim]to read one.[/dim]")


def _render_article(page: ArticleDetail) -> None:
    lines = [f"[bold]{escape(page.title)}[/bold]"]
    if page.description:
        lines.append(f"[italic]{escape(page.description)}[/italic]")
    lines.append("")
    lines.append(escape(page.extract_plain_text))
    lines.append("")
    lines.append(f"[dim]Last modified:[/dim] {page.formatted_timestamp}")
    if page.wikidata_id:
        lines.append(f"[dim]Wikidata:[/dim] {page.wikidata_id}")
    if page.thumbnail:
        lines.append(f"[dim]Image:[/dim] {page.thumbnail.url}")
    lines.append(f"[dim]Read on Wikipedia:[/dim] {page.desktop_url}")
    print(Panel("\n".join(lines), expand=False))


@app.command()
def article(
    title: str = typer.Argument(..., help="Page title, plain or percent-encoded"),
    json_out: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """
    Show the summary of a single article.
    """
    try:
        page = asyncio.run(_service().get_article(title))
    except (UpstreamError, ValidationError) as exc:
        raise _fail(exc)

    if json_out:
        _emit_json(asdict(page))
    else:
        _render_article(page)


@app.command()
def changes(
    limit: int = typer.Option(
        config.DEFAULT_CHANGES_LIMIT, "--limit", "-n", help="Maximum number of edits"
    ),
    json_out: bool = typer.Option(False, "--json", help="Emit JSON instead of table"),
) -> None:
    """
    Recent edits to Batman-related articles.
    """
    try:
        edits = asyncio.run(_service().recent_topic_changes(limit))
    except (UpstreamError, ValidationError) as exc:
        raise _fail(exc)

    if json_out:
        _emit_json([{**asdict(c), "size_delta": c.size_delta} for c in edits])
        return

    if not edits:
        print(Panel.fit("[bold yellow]No recent Batman edits.[/bold yellow]"))
        return

    table = Table(title="Recent Batman edits")
    table.add_column("When")
    table.add_column("Title")
    table.add_column("User")
    table.add_column("Δ bytes", justify="right")
    table.add_column("Comment")
    for c in edits:
        table.add_row(
            c.formatted_timestamp,
            escape(c.title),
            escape(c.user),
            f"{c.size_delta:+d}",
            escape(c.comment[:120]),
        )
    print(table)


@app.command()
def categories(
    json_out: bool = typer.Option(False, "--json", help="Emit JSON instead of a list"),
) -> None:
    """
    Wikipedia categories whose names start with "Batman".
    """
    try:
        names = asyncio.run(_service().topic_categories())
    except (UpstreamError, ValidationError) as exc:
        raise _fail(exc)

    if json_out:
        _emit_json(names)
        return
    for name in names:
        print(f"- {escape(name)}")


@app.command()
def watch(
    limit: int = typer.Option(
        config.DEFAULT_ARTICLE_LIMIT, "--limit", "-n", help="Search page size before filtering"
    ),
    interval: float = typer.Option(
        config.SEARCH_REVALIDATE_SECONDS, help="Seconds between refreshes"
    ),
    iterations: int = typer.Option(0, help="Stop after this many fetches (0 = forever)"),
    cache: bool = typer.Option(True, "--cache/--no-cache", help="Reuse responses within their revalidation window"),
) -> None:
    """
    Keep the article list on screen and refresh it periodically.
    A failed refresh keeps the previous list and says so.
    """
    feed = TopicFeed(_service(cached=cache), limit=limit)

    async def run() -> None:
        count = 0
        while True:
            try:
                await feed.refresh()
            except UpstreamError as exc:
                if feed.error_phase == "initial":
                    raise _fail(exc)
                print(
                    f"[bold yellow]Refresh failed ({escape(str(exc))}); "
                    "showing previous results.[/bold yellow]"
                )
            else:
                stamp = feed.last_updated.strftime("%H:%M:%S") if feed.last_updated else "-"
                print(_articles_table(feed.articles, f"Batman articles (updated {stamp})"))

            count += 1
            if iterations and count >= iterations:
                return
            await asyncio.sleep(interval)

    try:
        asyncio.run(run())
    except ValidationError as exc:
        raise _fail(exc)

