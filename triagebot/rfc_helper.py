"""Adding a link to the rendered text of a newly opened RFC pull request."""

from __future__ import annotations

import logging
from typing import Any

from triagebot.github import Context, IssuesAction

log = logging.getLogger(__name__)


async def handle(ctx: Context, event: Any) -> None:
    """Add a rendered link to RFC pull requests; failures are only logged."""
    if not isinstance(getattr(event, "action", None), IssuesAction):
        return
    repo = event.issue.repository()
    if not (repo.organization == "rust-lang" and repo.repository == "rfcs"):
        return
    try:
        await add_rendered_link(ctx, event)
    except Exception as err:
        log.error("Error adding rendered link: %r", err)


async def add_rendered_link(ctx: Context, event: Any) -> None:
    """On opening, append a ``[Rendered]`` link to the first file under ``text/``."""
    if event.action is not IssuesAction.OPENED:
        return
    issue = event.issue
    files = await ctx.github.files(issue)
    text_file = next((f for f in files if f.filename.startswith("text/")), None)
    if text_file is None or "[Rendered]" in issue.body:
        return
    head = issue.head
    if head is None:
        raise ValueError(f"pull request {issue.number} has no head branch")
    # Stable while the PR is open, even across new pushes.
    url = f"https://github.com/{head.repo.full_name}/blob/{head.git_ref}/{text_file.filename}"
    await ctx.github.edit_body(issue, f"{issue.body}\n\n[Rendered]({url})")