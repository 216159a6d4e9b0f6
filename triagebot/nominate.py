"""Nomination and beta approval of issues and pull requests by team members."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from triagebot.github import Context, Label
from triagebot.interactions import ErrorComment


class NominateStyle(enum.Enum):
    DECISION = "decision"
    BETA = "beta"
    BETA_APPROVE = "beta_approve"


@dataclass(frozen=True)
class NominateCommand:
    team: str
    style: NominateStyle


@dataclass
class NominateConfig:
    """Maps nominatable team names to their labels."""

    teams: dict[str, str] = field(default_factory=dict)


async def handle_command(
    ctx: Context, config: NominateConfig, event: Any, cmd: NominateCommand
) -> None:
    """Add nomination or beta-acceptance labels, or explain why it is not allowed."""
    issue = event.issue
    try:
        is_team_member = await ctx.github.is_team_member(event.user().login)
    except Exception:
        is_team_member = False

    if not is_team_member:
        await ErrorComment(
            issue,
            "Nominating and approving issues and pull requests is restricted to members of "
            "the Rust teams.",
        ).post(ctx.github)
        return

    if cmd.style is NominateStyle.BETA_APPROVE:
        if not issue.has_label("beta-nominated"):
            await ErrorComment(
                issue,
                "This pull request is not beta-nominated, so it cannot be approved yet. "
                f"Perhaps try to beta-nominate it by using `@{ctx.username} beta-nominate <team>`?",
            ).post(ctx.github)
            return
        # The nomination and team labels stay in place.
        labels_to_add = [Label("beta-accepted")]
    else:
        team_label = config.teams.get(cmd.team)
        if team_label is None:
            await ErrorComment(
                issue,
                f"This team (`{cmd.team}`) cannot be nominated for via this command; "
                "it may need to be added to `triagebot.toml` on the default branch.",
            ).post(ctx.github)
            return
        style_label = "I-nominated" if cmd.style is NominateStyle.DECISION else "beta-nominated"
        labels_to_add = [Label(team_label), Label(style_label)]

    await ctx.github.add_labels(issue, labels_to_add)