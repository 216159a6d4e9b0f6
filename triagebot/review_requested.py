"""Relabeling a pull request when its author asks an assignee for review."""

from __future__ import annotations

from dataclasses import dataclass, field

from triagebot.github import Context, IssuesAction, IssuesEvent, Label


@dataclass
class ReviewRequestedConfig:
    remove_labels: list[str] = field(default_factory=list)
    add_labels: list[str] = field(default_factory=list)


def parse_input(event: IssuesEvent, config: ReviewRequestedConfig | None) -> bool:
    """Return whether the PR author requested a review from one of its assignees."""
    if config is None:
        return False
    if event.action is not IssuesAction.REVIEW_REQUESTED or event.requested_reviewer is None:
        return False
    if event.sender != event.issue.user:
        return False
    return event.requested_reviewer in event.issue.assignees


async def handle_input(ctx: Context, config: ReviewRequestedConfig, event: IssuesEvent) -> None:
    """Add the configured labels, then remove the configured ones."""
    await ctx.github.add_labels(event.issue, [Label(name) for name in config.add_labels])
    for label in config.remove_labels:
        await ctx.github.remove_label(event.issue, label)