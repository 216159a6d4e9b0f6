"""Single-word shortcuts that set a pull request's status label."""

from __future__ import annotations

import enum
from typing import Any

from triagebot.github import Context, Label
from triagebot.interactions import ErrorComment

WAITING_ON_REVIEW = "S-waiting-on-review"
WAITING_ON_AUTHOR = "S-waiting-on-author"
BLOCKED = "S-blocked"
STATUS_LABELS = (WAITING_ON_REVIEW, WAITING_ON_AUTHOR, BLOCKED)


class ShortcutCommand(enum.Enum):
    READY = "Ready"
    AUTHOR = "Author"
    BLOCKED = "Blocked"

    @property
    def label(self) -> str:
        return {
            ShortcutCommand.READY: WAITING_ON_REVIEW,
            ShortcutCommand.AUTHOR: WAITING_ON_AUTHOR,
            ShortcutCommand.BLOCKED: BLOCKED,
        }[self]


async def handle_command(ctx: Context, event: Any, cmd: ShortcutCommand) -> None:
    """Switch the PR's status label to the one ``cmd`` stands for."""
    issue = event.issue
    if not issue.is_pr():
        message = f'The "{cmd.value}" shortcut only works on pull requests.'
        await ErrorComment(issue, message).post(ctx.github)
        return

    add = cmd.label
    if issue.has_label(add):
        return
    for remove in STATUS_LABELS:
        if remove != add:
            await ctx.github.remove_label(issue, remove)
    await ctx.github.add_labels(issue, [Label(add)])