"""CLI 엔트리포인트."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree
from selectolax.parser import HTMLParser

from hn_relay.config import settings
from hn_relay.links import favicon_url
from hn_relay.models import Item
from hn_relay.service import HNService

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="hn-relay",
    help="Hacker News API 앞단의 캐시 계층을 조회합니다.",
    no_args_is_help=True,
)


def _plain_text(html: str | None, limit: int = 200) -> str:
    """댓글 HTML을 한 줄 텍스트로 만든다."""
    if not html:
        return ""
    text = " ".join(HTMLParser(html).text(separator=" ").split())
    if len(text) > limit:
        text = text[:limit] + "…"
    return text


def _comment_label(item: Item) -> str:
    if not item.is_visible:
        return f"[dim]{escape('[deleted]')}[/dim]"
    author = escape(item.by or "?")
    when = escape(item.relative_time or "")
    return f"[bold]{author}[/bold] [dim]{when}[/dim]\n{escape(_plain_text(item.text))}"


def _add_comments(node: Tree, item: Item, depth: int | None) -> None:
    """해석된 댓글을 rich 트리에 추가한다."""
    if depth is not None and depth <= 0:
        hidden = len(item.resolved_kids())
        if hidden:
            node.add(f"[dim]… {hidden} more[/dim]")
        return

    for kid in item.resolved_kids():
        child = node.add(_comment_label(kid))
        _add_comments(child, kid, None if depth is None else depth - 1)


def _render_stories(stories: list[Item]) -> None:
    if not stories:
        console.print("[yellow]가져온 스토리가 없습니다.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("제목", style="bold")
    table.add_column("작성자", width=16)
    table.add_column("점수", justify="right", width=6)
    table.add_column("댓글", justify="right", width=6)
    table.add_column("시간", width=16)

    for i, story in enumerate(stories, 1):
        title = escape(story.title or "-")
        if story.url:
            title = f"[link={story.url}]{title}[/link]"
        table.add_row(
            str(i),
            title,
            escape(story.by or "-"),
            str(story.score or 0),
            str(story.descendants or 0),
            story.relative_time or "-",
        )

    console.print(table)


def _render_story(story: Item, og_image: str | None, depth: int | None) -> None:
    title = escape(story.title or f"item {story.id}")
    root = Tree(f"[bold blue]{title}[/bold blue]")
    if story.url:
        root.add(f"[dim]🔗 {escape(story.url)}[/dim]")
        icon = favicon_url(story.url)
        if icon:
            root.add(f"[dim]favicon: {escape(icon)}[/dim]")
    if og_image:
        root.add(f"[dim]🖼  {escape(og_image)}[/dim]")
    if story.text:
        root.add(escape(_plain_text(story.text, limit=500)))

    _add_comments(root, story, depth)
    console.print(root)


async def _run_top(limit: int) -> None:
    async with HNService.create(settings) as service:
        stories = await service.top_stories(limit)
    _render_stories(stories)


async def _run_item(item_id: int, depth: int | None) -> bool:
    async with HNService.create(settings) as service:
        story = await service.story(item_id)
        if story is None:
            return False
        og_image = await service.og_image_url(story.url) if story.url else None
    _render_story(story, og_image, depth)
    return True


async def _run_og(url: str) -> str | None:
    async with HNService.create(settings) as service:
        return await service.og_image_url(url)


async def _run_warm(limit: int) -> int:
    """상위 스토리와 각 댓글 트리를 미리 캐시에 채운다."""
    async with HNService.create(settings) as service:
        stories = await service.top_stories(limit)
        trees = await asyncio.gather(*(service.story(s.id) for s in stories))
    warmed = sum(1 for tree in trees if tree is not None)
    logger.info(f"Warmed {warmed}/{len(stories)} story trees")
    return warmed


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """코루틴을 실행하고 예외를 사용자 메시지로 바꾼다."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        console.print("\n[dim]중단됨[/dim]")
        raise typer.Exit(0) from None
    except Exception as e:
        console.print(f"[red]오류 발생: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


@app.callback()
def configure(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="디버그 로그 출력"),
    ] = False,
) -> None:
    """로깅을 설정한다."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def top(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="가져올 스토리 수"),
    ] = settings.top_stories_limit,
) -> None:
    """상위 스토리를 출력합니다."""
    with console.status("Top Stories 가져오는 중..."):
        _run(_run_top(limit))


@app.command()
def item(
    item_id: Annotated[int, typer.Argument(help="Hacker News 아이템 ID")],
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-d", min=0, help="출력할 댓글 깊이 (기본: 전체)"),
    ] = None,
) -> None:
    """스토리와 전체 댓글 트리를 출력합니다."""
    with console.status(f"item {item_id} 댓글 트리 조립 중..."):
        found = _run(_run_item(item_id, depth))
    if not found:
        console.print(f"[yellow]item {item_id}을(를) 가져오지 못했습니다.[/yellow]")
        raise typer.Exit(1)


@app.command()
def og(
    url: Annotated[str, typer.Argument(help="프리뷰 이미지를 찾을 페이지 URL")],
) -> None:
    """페이지의 프리뷰 이미지 URL을 출력합니다."""
    image_url = _run(_run_og(url))
    if image_url is None:
        console.print("[yellow]프리뷰 이미지가 없습니다.[/yellow]")
        raise typer.Exit(1)
    console.print(image_url)


@app.command()
def warm(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="미리 채울 스토리 수"),
    ] = settings.top_stories_limit,
) -> None:
    """상위 스토리와 댓글 트리를 캐시에 미리 채웁니다."""
    with console.status("캐시 채우는 중..."):
        warmed = _run(_run_warm(limit))
    console.print(f"[green]✓[/green] {warmed}개 스토리 트리 캐시 완료")


if __name__ == "__main__":
    app()
