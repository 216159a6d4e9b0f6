"""Pinging interested people when a pull request touches configured paths."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from triagebot.github import Context, IssuesAction, IssuesEvent
from triagebot.storage import load_issue_data

log = logging.getLogger(__name__)

MENTIONS_KEY = "mentions"


@dataclass
class MentionsPathConfig:
    message: str | None = None
    cc: list[str] = field(default_factory=list)


@dataclass
class MentionsConfig:
    """The ``[mentions]`` table: path prefix to message and people to ping."""

    paths: dict[str, MentionsPathConfig] = field(default_factory=dict)


@dataclass
class MentionsInput:
    paths: list[str]


def _starts_with(path: PurePosixPath, prefix: PurePosixPath) -> bool:
    return path.parts[: len(prefix.parts)] == prefix.parts


async def parse_input(
    ctx: Context, event: IssuesEvent, config: MentionsConfig | None
) -> MentionsInput | None:
    """Return the configured paths that the PR touches, or None."""
    if config is None:
        return None
    if event.action not in (
        IssuesAction.OPENED,
        IssuesAction.SYNCHRONIZE,
        IssuesAction.READY_FOR_REVIEW,
    ):
        return None
    issue = event.issue
    # Don't ping on rollups, draft PRs or backports.
    if issue.title.startswith("Rollup of") or issue.draft or "[beta] backport" in issue.title:
        return None

    try:
        files = await ctx.github.diff(issue)
    except Exception as err:
        log.error("failed to fetch diff: %r", err)
        return None
    if files is None:
        return None

    file_paths = [PurePosixPath(fd.path) for fd in files]
    to_mention: list[str] = []
    for path, path_config in config.paths.items():
        prefix = PurePosixPath(path)
        touches = any(_starts_with(p, prefix) for p in file_paths)
        # Don't mention if only the author is in the list.
        cc = path_config.cc
        pings_non_author = len(cc) != 1 or cc[0].lstrip("@") != issue.user.login
        if touches and pings_non_author:
            to_mention.append(path)
    return MentionsInput(to_mention) if to_mention else None


async def handle_input(
    ctx: Context, config: MentionsConfig, event: IssuesEvent, mentions_input: MentionsInput
) -> None:
    """Post one comment for paths not mentioned before on this issue."""
    state = await load_issue_data(ctx.db, event.issue, MENTIONS_KEY, lambda: {"paths": []})
    mentioned: list[str] = state.data.setdefault("paths", [])
    sections: list[str] = []
    for path in mentions_input.paths:
        if path in mentioned:
            continue
        path_config = config.paths[path]
        section = (
            path_config.message
            if path_config.message is not None
            else f"Some changes occurred in {path}"
        )
        if path_config.cc:
            section += f"\n\ncc {', '.join(path_config.cc)}"
        sections.append(section)
        mentioned.append(path)
    if not sections:
        return
    try:
        await ctx.github.post_comment(event.issue, "\n\n".join(sections))
    except Exception as exc:
        raise RuntimeError("failed to post mentions comment") from exc
    await state.save()