"""Label changes requested in comments, restricted by an allow-list for outsiders."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any

from triagebot.github import Context, GithubClient, Label
from triagebot.globs import GlobError, GlobPattern
from triagebot.interactions import ErrorComment

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelDelta:
    """A label to add, or to remove when ``remove`` is set."""

    label: str
    remove: bool = False


@dataclass
class RelabelConfig:
    allow_unauthenticated: list[str] = field(default_factory=list)


class TeamMembership(enum.Enum):
    MEMBER = "member"
    OUTSIDER = "outsider"
    UNKNOWN = "unknown"


class CheckFilterResult(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    DENY_UNKNOWN = "deny_unknown"


class MatchPatternResult(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    NO_MATCH = "no_match"


def match_pattern(pattern: str, label: str) -> MatchPatternResult:
    """Match ``label`` against a case-insensitive glob; a leading ``!`` makes it a deny rule."""
    inverse = pattern.startswith("!")
    if inverse:
        pattern = pattern[1:]
    if not GlobPattern(pattern).matches(label, case_sensitive=False):
        return MatchPatternResult.NO_MATCH
    return MatchPatternResult.DENY if inverse else MatchPatternResult.ALLOW


def check_filter(
    label: str, config: RelabelConfig, membership: TeamMembership
) -> CheckFilterResult:
    """Decide whether a user with ``membership`` may change ``label``."""
    if membership is TeamMembership.MEMBER:
        return CheckFilterResult.ALLOW
    matched = False
    for pattern in config.allow_unauthenticated:
        try:
            result = match_pattern(pattern, label)
        except GlobError as err:
            log.error("failed to match pattern %s: %s", pattern, err)
            raise ValueError(f"failed to match pattern {pattern}") from err
        if result is MatchPatternResult.ALLOW:
            matched = True
        elif result is MatchPatternResult.DENY:
            # An explicit deny overrides any allowed pattern.
            matched = False
            break
    if matched:
        return CheckFilterResult.ALLOW
    if membership is TeamMembership.OUTSIDER:
        return CheckFilterResult.DENY
    return CheckFilterResult.DENY_UNKNOWN


async def membership_of(client: GithubClient, login: str) -> TeamMembership:
    """Return the team membership of ``login``, or UNKNOWN if it cannot be checked."""
    try:
        member = await client.is_team_member(login)
    except Exception as err:
        log.error("failed to check team membership: %r", err)
        return TeamMembership.UNKNOWN
    return TeamMembership.MEMBER if member else TeamMembership.OUTSIDER


async def handle_command(
    ctx: Context, config: RelabelConfig, event: Any, deltas: list[LabelDelta]
) -> None:
    """Apply label changes, or post an error for the first disallowed one."""
    issue = event.issue
    membership = await membership_of(ctx.github, event.user().login)
    to_add: list[Label] = []
    to_remove: list[str] = []
    for delta in deltas:
        name = delta.label
        try:
            result = check_filter(name, config, membership)
        except ValueError as err:
            message: str | None = str(err)
        else:
            if result is CheckFilterResult.DENY:
                message = f"Label {name} can only be set by Rust team members"
            elif result is CheckFilterResult.DENY_UNKNOWN:
                message = (
                    f"Label {name} can only be set by Rust team members;"
                    "we were unable to check if you are a team member."
                )
            else:
                message = None
        if message is not None:
            await ErrorComment(issue, message).post(ctx.github)
            return
        if delta.remove:
            to_remove.append(name)
        else:
            to_add.append(Label(name))

    try:
        await ctx.github.add_labels(issue, to_add)
    except Exception as err:
        log.error("failed to add %r to issue %s: %r", to_add, issue.global_id(), err)
        raise
    for label in to_remove:
        try:
            await ctx.github.remove_label(issue, label)
        except Exception as err:
            log.error("failed to remove %r from issue %s: %r", label, issue.global_id(), err)
            raise