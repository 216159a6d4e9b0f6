"""Pinging a configured team from a comment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from triagebot.github import Context, Label
from triagebot.interactions import ErrorComment


@dataclass
class PingTeamConfig:
    message: str
    label: str | None = None
    alias: set[str] = field(default_factory=set)


@dataclass
class PingConfig:
    """The ``[ping]`` table: pingable team names and their settings."""

    teams: dict[str, PingTeamConfig] = field(default_factory=dict)

    def get_by_name(self, name: str) -> tuple[str, PingTeamConfig] | None:
        """Find a team by its name or one of its aliases."""
        if name in self.teams:
            return name, self.teams[name]
        for team_name, cfg in self.teams.items():
            if name in cfg.alias:
                return team_name, cfg
        return None


async def handle_command(ctx: Context, config: PingConfig, event: Any, team_name: str) -> None:
    """Ping every member (or linked team) of ``team_name``, if the commenter may."""
    issue = event.issue
    try:
        is_team_member = await ctx.github.is_team_member(event.user().login)
    except Exception:
        is_team_member = False
    if not is_team_member:
        await ErrorComment(issue, "Only Rust team members can ping teams.").post(ctx.github)
        return

    found = config.get_by_name(team_name)
    if found is None:
        await ErrorComment(
            issue,
            f"This team (`{team_name}`) cannot be pinged via this command; "
            "it may need to be added to `triagebot.toml` on the default branch.",
        ).post(ctx.github)
        return
    gh_team, team_config = found

    team = await ctx.github.get_team(gh_team)
    if team is None:
        await ErrorComment(
            issue, f"This team (`{team_name}`) does not exist in the team repository."
        ).post(ctx.github)
        return

    if team_config.label is not None:
        await ctx.github.add_labels(issue, [Label(team_config.label)])

    if team.github is not None:
        # Teams cannot be pinged across organizations.
        org = issue.repository().organization
        users = [f"@{t.org}/{t.name}" for t in team.github if t.org == org]
    else:
        users = [f"@{member.github}" for member in team.members]

    ping_msg = f"cc {' '.join(users)}" if users else "no known users to ping?"
    await ctx.github.post_comment(issue, f"{team_config.message}\n\n{ping_msg}")