"""Recording the merge commits of the compiler repository reported by bors."""

from __future__ import annotations

import json
import logging
import re
from collections import deque
from dataclasses import dataclass
from typing import Any, ClassVar

from triagebot.github import Context, IssueCommentAction
from triagebot.storage import Commit

log = logging.getLogger(__name__)

BORS_GH_ID = 3372342

_HOMU_START = "<!-- homu: "
_HOMU_END = " -->"
_AUTO_MERGE_PREFIX = "Auto merge of #"
_DIGITS = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class BorsMessage:
    """The machine-readable part of a bors build comment."""

    type: str
    base_ref: str
    merge_sha: str


def parse_bors_message(body: str) -> BorsMessage:
    """Extract the bors message from a comment; raises ValueError if it is absent or invalid."""
    start = body.find(_HOMU_START)
    end = body.find(_HOMU_END)
    if start == -1 or end == -1:
        raise ValueError(f"Unable to extract build completion from comment {body!r}")
    text = body[start + len(_HOMU_START):end]
    try:
        raw = json.loads(text)
        message = BorsMessage(
            type=raw["type"], base_ref=raw["base_ref"], merge_sha=raw["merge_sha"]
        )
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        raise ValueError(f"failed to parse build completion from {text!r}: {exc!r}") from exc
    if not all(isinstance(v, str) for v in (message.type, message.base_ref, message.merge_sha)):
        raise ValueError(f"failed to parse build completion from {text!r}")
    return message


def pr_number_from_message(message: str) -> int | None:
    """Return the PR number of an ``Auto merge of #N ...`` commit message, if any."""
    if not message.startswith(_AUTO_MERGE_PREFIX):
        return None
    tail = message[len(_AUTO_MERGE_PREFIX):]
    end = tail.find(" ")
    if end == -1 or not _DIGITS.fullmatch(tail[:end]):
        return None
    number = int(tail[:end])
    return number if number < 2**32 else None


async def handle(ctx: Context, event: Any) -> None:
    """Record commits when bors reports a successful build on master."""
    body = event.comment_body()
    if body is None:
        return
    if not isinstance(getattr(event, "action", None), IssueCommentAction):
        return
    if event.action is not IssueCommentAction.CREATED:
        return
    if "Test successful" not in body:
        return
    if event.comment.user.id != BORS_GH_ID:
        log.debug("Ignoring non-bors comment, user: %r", event.comment.user)
        return
    repo = event.issue.repository()
    if not (repo.organization == "rust-lang" and repo.repository == "rust"):
        return
    try:
        bors = parse_bors_message(body)
    except ValueError as err:
        log.warning("%s", err)
        return
    if bors.type != "BuildCompleted":
        log.debug("Not build completion? %r", bors)
    if bors.base_ref != "master":
        log.debug("Ignoring bors merge, not on master")
        return
    await synchronize_commits(ctx, (bors.merge_sha, event.issue.number))


async def synchronize_commits(ctx: Context, starter: tuple[str, int] | None = None) -> None:
    """Fetch and record commits missing from the database, walking back through parents."""
    to_be_resolved: deque[tuple[str, int | None]] = deque()
    if starter is not None:
        to_be_resolved.append(starter)
    to_be_resolved.extend((sha, None) for sha in await ctx.db.missing_commits())
    log.info("synchronize_commits for %r", list(to_be_resolved))

    while to_be_resolved:
        sha, pr = to_be_resolved.popleft()
        gc = await ctx.github.rust_commit(sha)
        if gc is None:
            log.error("Could not find bors-reported sha: %r", sha)
            continue
        if not gc.parents:
            log.error("Commit %s has no parents", sha)
            continue
        parent_sha = gc.parents[0].sha

        if pr is None:
            pr = pr_number_from_message(gc.commit.message)
        if pr is None:
            log.warning("Failed to find PR number for commit %s", sha)
            continue

        commit = Commit(sha=gc.sha, parent_sha=parent_sha, time=gc.commit.author.date, pr=pr)
        try:
            await ctx.db.record_commit(commit)
        except Exception as err:
            log.error("Failed to record commit %r", err)
            continue
        if not await ctx.db.has_commit(parent_sha):
            to_be_resolved.append((parent_sha, None))


class RustcCommitsJob:
    """Scheduled job that fills in commits missing from the database."""

    name: ClassVar[str] = "rustc_commits"

    async def run(self, ctx: Context, metadata: Any) -> None:
        await synchronize_commits(ctx, None)