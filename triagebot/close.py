"""Closing an issue or pull request on request of a team member."""

from __future__ import annotations

from typing import Any

from triagebot.github import Context
from triagebot.interactions import ErrorComment


async def handle_command(ctx: Context, event: Any) -> None:
    """Close the event's issue if the commenter is a team member, else explain why not."""
    issue = event.issue
    try:
        is_team_member = await ctx.github.is_team_member(event.user().login)
    except Exception:
        is_team_member = False
    if not is_team_member:
        await ErrorComment(issue, "Only team members can close issues.").post(ctx.github)
        return
    await ctx.github.close(issue)