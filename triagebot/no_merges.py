"""Warning pull request authors about merge commits in their changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from triagebot.github import Context, IssuesAction, IssuesEvent, Label
from triagebot.storage import load_issue_data

log = logging.getLogger(__name__)

NO_MERGES_KEY = "no_merges"

DEFAULT_MESSAGE = """
There are merge commits (commits with multiple parents) in your changes. We have a \
no merge policy so these commits will need to be removed for this pull request to be merged.

You can start a rebase with the following commands:
```shell-session
$ # rebase
$ git rebase -i master
$ # delete any merge commits in the editor that appears
$ git push --force-with-lease
```

"""


@dataclass
class NoMergesConfig:
    exclude_titles: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    message: str | None = None


@dataclass
class NoMergesInput:
    merge_commits: set[str]


def compose_message(base: str, commits: Iterable[str], first_time: bool) -> str:
    """Append the list of merge commits to ``base``."""
    since = "" if first_time else " (since this message was last posted)"
    lines = [f"The following commits are merge commits{since}:\n"]
    lines.extend(f"- {commit}\n" for commit in commits)
    return base + "".join(lines)


async def parse_input(
    ctx: Context, event: IssuesEvent, config: NoMergesConfig | None
) -> NoMergesInput | None:
    """Collect the PR's merge commits, or None if there is nothing to report."""
    if event.action not in (
        IssuesAction.OPENED,
        IssuesAction.SYNCHRONIZE,
        IssuesAction.READY_FOR_REVIEW,
    ):
        return None
    if config is None:
        return None
    issue = event.issue
    if issue.title.startswith("Rollup of") or issue.draft:
        return None
    if any(segment in issue.title for segment in config.exclude_titles):
        return None

    try:
        commits = await ctx.github.commits(issue)
    except Exception as err:
        log.error("failed to fetch commits: %r", err)
        commits = []
    merge_commits = {commit.sha for commit in commits if len(commit.parents) > 1}
    return NoMergesInput(merge_commits) if merge_commits else None


async def handle_input(
    ctx: Context, config: NoMergesConfig, event: IssuesEvent, no_merges_input: NoMergesInput
) -> None:
    """Label the PR and list merge commits that have not been mentioned yet."""
    issue = event.issue
    state = await load_issue_data(
        ctx.db, issue, NO_MERGES_KEY, lambda: {"mentioned_merge_commits": []}
    )
    mentioned: list[str] = state.data.setdefault("mentioned_merge_commits", [])
    first_time = not mentioned

    new_commits = sorted(no_merges_input.merge_commits - set(mentioned))
    if not new_commits:
        return
    mentioned.extend(new_commits)

    if not first_time:
        # Labels removed by hand mean the earlier warning was a false positive.
        if any(not issue.has_label(label) for label in config.labels):
            await state.save()
            return

    base = config.message if config.message is not None else DEFAULT_MESSAGE
    message = compose_message(base, new_commits, first_time)
    try:
        await ctx.github.add_labels(issue, [Label(name) for name in config.labels])
    except Exception as exc:
        raise RuntimeError("failed to set no_merges labels") from exc
    try:
        await ctx.github.post_comment(issue, message)
    except Exception as exc:
        raise RuntimeError("failed to post no_merges comment") from exc
    await state.save()