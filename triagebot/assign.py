"""Assignment of issues and pull requests, and reviewer selection for new PRs."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any

from triagebot.github import (
    Context,
    FileDiff,
    GithubClient,
    InvalidAssigneeError,
    Issue,
    IssuesAction,
    IssuesEvent,
    Label,
    UnknownLabelsError,
)
from triagebot.interactions import EditIssueBody
from triagebot.reviewers import (
    AssignConfig,
    FindReviewerError,
    TeamNotFound,
    find_reviewer_from_names,
    find_reviewers_from_diff,
)

log = logging.getLogger(__name__)

NEW_USER_WELCOME_MESSAGE = (
    "Thanks for the pull request, and welcome! "
    "The Rust team is excited to review your changes, and you should hear from {who} soon."
)

CONTRIBUTION_MESSAGE = (
    "Please see [the contribution instructions]({contributing_url}) for more information. "
    "Namely, in order to ensure the minimum review times lag, PR authors and assigned "
    "reviewers should ensure that the review label (`S-waiting-on-review` and "
    "`S-waiting-on-author`) stays updated, invoking these commands when appropriate:\n"
    "\n"
    "- `@{bot} author`: the review is finished, PR author should check the comments and "
    "take action accordingly\n"
    "- `@{bot} review`: the author is ready for a review, this PR will be queued again in "
    "the reviewer's queue"
)

WELCOME_WITH_REVIEWER = "@{assignee} (or someone else)"

WELCOME_WITHOUT_REVIEWER = "the repository maintainers (NB. this repo may be misconfigured)"

RETURNING_USER_WELCOME_MESSAGE = (
    "r? @{assignee}\n\n({bot} has picked a reviewer for you, use r? to override)"
)

RETURNING_USER_WELCOME_MESSAGE_NO_REVIEWER = (
    "@{author}: no appropriate reviewer found, use r? to override"
)

ON_VACATION_WARNING = "{username} is on vacation. Please do not assign them to PRs."

NON_DEFAULT_BRANCH = (
    "Pull requests are usually filed against the {default} branch for this repo, "
    "but this one is against {target}. "
    "Please double check that you specified the right target!"
)

SUBMODULE_WARNING_MSG = "These commits modify **submodules**."

_SUBMODULE_RE = re.compile(r"\+Subproject\scommit\s")


@dataclass(frozen=True)
class AssignCommand:
    """An assignment command given in a comment."""

    class Kind(enum.Enum):
        OWN = "own"
        USER = "user"
        RELEASE = "release"
        REVIEW_NAME = "review_name"

    kind: AssignCommand.Kind
    name: str | None = None

    @classmethod
    def own(cls) -> AssignCommand:
        return cls(cls.Kind.OWN)

    @classmethod
    def user(cls, username: str) -> AssignCommand:
        return cls(cls.Kind.USER, username)

    @classmethod
    def release(cls) -> AssignCommand:
        return cls(cls.Kind.RELEASE)

    @classmethod
    def review_name(cls, name: str) -> AssignCommand:
        return cls(cls.Kind.REVIEW_NAME, name)


@dataclass(frozen=True)
class AssignData:
    """The data stored in the bot section of an assigned issue."""

    user: str | None = None

    def to_data(self) -> dict[str, Any]:
        return {"user": self.user}

    @classmethod
    def from_data(cls, data: Any) -> AssignData | None:
        if not isinstance(data, dict):
            return None
        return cls(user=data.get("user"))


def on_vacation_msg(user: str) -> str:
    return ON_VACATION_WARNING.replace("{username}", user)


def is_self_assign(assignee: str, pr_author: str) -> bool:
    return assignee.lower() == pr_author.lower()


def _strip_all(text: str, prefix: str) -> str:
    while prefix and text.startswith(prefix):
        text = text[len(prefix):]
    return text


def non_default_branch(event: IssuesEvent) -> str | None:
    """Return a warning if the PR targets a branch other than the default one."""
    if event.issue.base is None:
        raise ValueError(f"pull request {event.issue.global_id()} has no base branch")
    target = event.issue.base.git_ref
    default = event.repository.default_branch
    if target == default:
        return None
    return NON_DEFAULT_BRANCH.replace("{default}", default).replace("{target}", target)


def modifies_submodule(diff: list[FileDiff]) -> str | None:
    """Return a warning if the diff updates a git submodule."""
    if any(_SUBMODULE_RE.search(fd.diff) for fd in diff):
        return SUBMODULE_WARNING_MSG
    return None


async def set_assignee(issue: Issue, github: GithubClient, username: str) -> None:
    """Assign ``username``, posting a comment if the assignment fails."""
    if issue.contain_assignee(username):
        log.debug("ignoring assign PR %s to %s, already assigned", issue.global_id(), username)
        return
    try:
        await github.set_assignee(issue, username)
    except Exception as err:
        log.warning("failed to set assignee of PR %s to %s: %r", issue.global_id(), username, err)
        message = (
            f"Failed to set assignee to `{username}`: {err}\n"
            "\n"
            "> **Note**: Only org members with at least the repository \"read\" role, "
            "users with write permissions, or people who have commented on the PR may "
            "be assigned."
        )
        try:
            await github.post_comment(issue, message)
        except Exception as exc:
            log.warning("failed to post error comment: %s", exc)


def parse_input(ctx: Context, event: IssuesEvent, config: AssignConfig | None) -> bool:
    """Return whether a newly opened PR should be auto-assigned."""
    if config is None or not config.owners:
        return False
    return event.action is IssuesAction.OPENED and event.issue.is_pr()


async def determine_assignee(
    ctx: Context,
    event: IssuesEvent,
    config: AssignConfig,
    diff: list[FileDiff],
    review_name: str | None = None,
) -> tuple[str | None, bool]:
    """Choose an assignee from ``r?``, the diff owners, or the fallback group.

    Returns ``(assignee, from_comment)``.
    """
    teams = await ctx.github.teams()
    issue = event.issue
    if review_name is not None:
        if is_self_assign(review_name, issue.user.login):
            return review_name, True
        try:
            return find_reviewer_from_names(teams, config, issue, [review_name]), True
        except FindReviewerError as err:
            await ctx.github.post_comment(issue, str(err))

    try:
        candidates = find_reviewers_from_diff(config, diff)
    except ValueError as err:
        log.warning(
            "failed to find candidate reviewer from diff due to error: %s\n"
            "Is the triagebot.toml misconfigured?",
            err,
        )
    else:
        if candidates:
            try:
                return find_reviewer_from_names(teams, config, issue, candidates), False
            except TeamNotFound as err:
                log.warning(
                    "team %s not found via diff from PR %s, is there maybe a misconfigured group?",
                    err.team,
                    issue.global_id(),
                )
            except FindReviewerError as err:
                log.debug("no reviewer could be determined for PR %s: %s", issue.global_id(), err)

    fallback = config.adhoc_groups.get("fallback")
    if fallback is not None:
        try:
            return find_reviewer_from_names(teams, config, issue, fallback), False
        except FindReviewerError as err:
            log.debug("failed to select from fallback group for PR %s: %s", issue.global_id(), err)
    return None, False


async def handle_input(
    ctx: Context,
    config: AssignConfig,
    event: IssuesEvent,
    review_name: str | None = None,
) -> None:
    """Assign a new PR, welcome its author and post warnings about it."""
    issue = event.issue
    diff = await ctx.github.diff(issue)
    if diff is None:
        raise ValueError(
            f"expected issue {issue.number} to be a PR, but the diff could not be determined"
        )

    if not issue.assignees:
        assignee, from_comment = await determine_assignee(ctx, event, config, diff, review_name)
        if assignee == "ghost":
            # The placeholder account for deleted users: a request for no assignment.
            return
        welcome: str | None
        if await ctx.github.is_new_contributor(event.repository, issue.user.login):
            if assignee is not None:
                who = WELCOME_WITH_REVIEWER.replace("{assignee}", assignee)
            else:
                who = WELCOME_WITHOUT_REVIEWER
            welcome = NEW_USER_WELCOME_MESSAGE.replace("{who}", who)
            if config.contributing_url is not None:
                welcome += "\n\n" + CONTRIBUTION_MESSAGE.replace(
                    "{contributing_url}", config.contributing_url
                ).replace("{bot}", ctx.username)
        elif not from_comment:
            if assignee is not None:
                welcome = RETURNING_USER_WELCOME_MESSAGE.replace(
                    "{assignee}", assignee
                ).replace("{bot}", ctx.username)
            else:
                welcome = RETURNING_USER_WELCOME_MESSAGE_NO_REVIEWER.replace(
                    "{author}", issue.user.login
                )
        else:
            welcome = None
        if assignee is not None:
            await set_assignee(issue, ctx.github, assignee)
        if welcome is not None:
            try:
                await ctx.github.post_comment(issue, welcome)
            except Exception as err:
                log.warning("failed to post welcome comment to %s: %s", issue.global_id(), err)

    warnings: list[str] = []
    if config.warn_non_default_branch:
        branch_warning = non_default_branch(event)
        if branch_warning is not None:
            warnings.append(branch_warning)
    submodule_warning = modifies_submodule(diff)
    if submodule_warning is not None:
        warnings.append(submodule_warning)
    if warnings:
        listed = "\n".join(f"* {warning}" for warning in warnings)
        await ctx.github.post_comment(issue, f":warning: **Warning** :warning:\n\n{listed}")


async def _team_member(ctx: Context, login: str) -> bool:
    try:
        return await ctx.github.is_team_member(login)
    except Exception:
        return False


async def _handle_pr_command(
    ctx: Context, config: AssignConfig, event: Any, cmd: AssignCommand
) -> None:
    issue = event.issue
    commenter = event.user().login
    if not issue.is_open():
        await ctx.github.post_comment(issue, "Assignment is not allowed on a closed PR.")
        return
    kind = cmd.kind
    if kind is AssignCommand.Kind.OWN:
        username = commenter
    elif kind is AssignCommand.Kind.USER:
        username = cmd.name or ""
        if config.is_on_vacation(username) and commenter.lower() != username.lower():
            await ctx.github.post_comment(issue, on_vacation_msg(username))
            return
    elif kind is AssignCommand.Kind.RELEASE:
        log.debug("ignoring release on PR %s, must always have assignee", issue.global_id())
        return
    else:
        name = cmd.name or ""
        if not config.owners:
            return
        if isinstance(event, IssuesEvent) and event.action is IssuesAction.OPENED:
            # New PRs are handled by handle_input, which also posts the welcome.
            return
        if is_self_assign(name, commenter):
            username = name
        else:
            teams = await ctx.github.teams()
            team_name = _strip_all(_strip_all(name, "t-"), "T-")
            if team_name in teams.teams:
                try:
                    await ctx.github.add_labels(issue, [Label(f"T-{team_name}")])
                except UnknownLabelsError as err:
                    log.warning("Error assigning label: %s", err)
            try:
                username = find_reviewer_from_names(teams, config, issue, [team_name])
            except FindReviewerError as err:
                await ctx.github.post_comment(issue, str(err))
                return
    await set_assignee(issue, ctx.github, username)


async def handle_command(
    ctx: Context, config: AssignConfig, event: Any, cmd: AssignCommand
) -> None:
    """Handle an assignment command posted in a comment."""
    is_team_member = await _team_member(ctx, event.user().login)

    # The bot's own comments contain commands meant as instructions.
    if event.user().login == ctx.username:
        return

    issue = event.issue
    if issue.is_pr():
        await _handle_pr_command(ctx, config, event, cmd)
        return

    commenter = event.user().login
    section = EditIssueBody(issue, "ASSIGN")
    kind = cmd.kind
    if kind is AssignCommand.Kind.OWN:
        to_assign = commenter
    elif kind is AssignCommand.Kind.USER:
        to_assign = cmd.name or ""
        if not is_team_member and to_assign != commenter:
            raise PermissionError("Only Rust team members can assign other users")
    elif kind is AssignCommand.Kind.RELEASE:
        stored = AssignData.from_data(section.current_data())
        if stored is not None and stored.user is not None:
            if stored.user == commenter or is_team_member:
                await ctx.github.remove_assignees(issue, None)
                await section.apply(ctx.github, "", AssignData().to_data())
                return
            raise PermissionError("Cannot release another user's assignment")
        if issue.contain_assignee(commenter):
            await ctx.github.remove_assignees(issue, commenter)
            await section.apply(ctx.github, "", AssignData().to_data())
            return
        raise ValueError("Cannot release unassigned issue")
    else:
        raise ValueError("r? is only allowed on PRs.")

    if issue.contain_assignee(to_assign):
        log.debug("ignoring assign issue %s to %s, already assigned", issue.global_id(), to_assign)
        return

    data = AssignData(user=to_assign).to_data()
    await section.apply(ctx.github, "", data)
    try:
        await ctx.github.set_assignee(issue, to_assign)
    except InvalidAssigneeError:
        try:
            await ctx.github.set_assignee(issue, ctx.username)
        except Exception as exc:
            raise RuntimeError("self-assignment failed") from exc
        body = (
            f"This issue has been assigned to @{to_assign} via "
            f"[this comment]({event.html_url()})."
        )
        await section.apply(ctx.github, body, data)