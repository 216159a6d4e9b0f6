"""Relabeling a pull request when an assignee requests changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from triagebot.github import (
    Context,
    IssueCommentAction,
    IssueCommentEvent,
    Label,
    PullRequestReviewState,
)


@dataclass
class ReviewSubmittedConfig:
    review_labels: list[str] = field(default_factory=list)
    reviewed_label: str = ""


async def handle(ctx: Context, event: Any, config: ReviewSubmittedConfig) -> None:
    """Swap review labels for the reviewed label on a changes-requested review by an assignee."""
    if not isinstance(event, IssueCommentEvent):
        return
    if event.action is not IssueCommentAction.CREATED or not event.issue.is_pr():
        return
    if event.comment.pr_review_state is not PullRequestReviewState.CHANGES_REQUESTED:
        return
    if event.comment.user not in event.issue.assignees:
        return
    for label in config.review_labels:
        await ctx.github.remove_label(event.issue, label)
    await ctx.github.add_labels(event.issue, [Label(config.reviewed_label)])