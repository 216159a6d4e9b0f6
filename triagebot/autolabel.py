"""Automatic labels applied from changed files, new issues and PRs, and other labels."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from triagebot.github import Context, Issue, IssuesAction, IssuesEvent, Label, UnknownLabelsError
from triagebot.globs import GlobError, GlobPattern

log = logging.getLogger(__name__)


@dataclass
class AutolabelLabelConfig:
    """When one label is applied automatically."""

    trigger_labels: list[str] = field(default_factory=list)
    exclude_labels: list[str] = field(default_factory=list)
    trigger_files: list[str] = field(default_factory=list)
    new_pr: bool = False
    new_issue: bool = False


@dataclass
class AutolabelConfig:
    """The ``[autolabel]`` table: label name to its rules."""

    labels: dict[str, AutolabelLabelConfig] = field(default_factory=dict)

    def get_by_trigger(self, label: str) -> list[tuple[str, AutolabelLabelConfig]]:
        """Return the labels, with their rules, that ``label`` triggers."""
        return [(name, cfg) for name, cfg in self.labels.items() if label in cfg.trigger_labels]


@dataclass
class AutolabelInput:
    add: list[Label] = field(default_factory=list)
    remove: list[Label] = field(default_factory=list)


def _is_excluded(issue: Issue, cfg: AutolabelLabelConfig) -> bool:
    patterns: list[GlobPattern] = []
    for name in cfg.exclude_labels:
        try:
            patterns.append(GlobPattern(name))
        except GlobError as err:
            log.error("Invalid glob pattern: %s", err)
    return any(pattern.matches(label.name) for label in issue.labels for pattern in patterns)


async def parse_input(
    ctx: Context, event: IssuesEvent, config: AutolabelConfig | None
) -> AutolabelInput | None:
    """Work out which labels to add for ``event``, or None if there are none."""
    if config is None:
        return None
    issue = event.issue

    # Re-applying labels on push may undo a manual removal; the before/after of a
    # synchronize can straddle a rebase, so this cannot be detected.
    if event.action in (IssuesAction.OPENED, IssuesAction.SYNCHRONIZE):
        try:
            files = await ctx.github.diff(issue)
        except Exception as err:
            log.error("failed to fetch diff: %r", err)
            files = None
        add: list[Label] = []
        for name, cfg in config.labels.items():
            if _is_excluded(issue, cfg):
                continue
            if files is not None:
                if any(fd.path.startswith(prefix) for prefix in cfg.trigger_files for fd in files):
                    add.append(Label(name))
                if cfg.new_pr and event.action is IssuesAction.OPENED:
                    add.append(Label(name))
            if not issue.is_pr() and cfg.new_issue and event.action is IssuesAction.OPENED:
                add.append(Label(name))
        if add:
            return AutolabelInput(add=add)

    if event.action is IssuesAction.LABELED and event.label is not None:
        add = [
            Label(name)
            for name, cfg in config.get_by_trigger(event.label.name)
            if not _is_excluded(issue, cfg)
        ]
        if add:
            return AutolabelInput(add=add)
    return None


async def handle_input(ctx: Context, event: IssuesEvent, autolabel_input: AutolabelInput) -> None:
    """Add and remove the labels; unknown labels are reported in a comment."""
    issue = event.issue
    try:
        await ctx.github.add_labels(issue, autolabel_input.add)
    except UnknownLabelsError as err:
        try:
            await ctx.github.post_comment(issue, str(err))
        except Exception as exc:
            raise RuntimeError("failed to post missing label comment") from exc
        return
    for label in autolabel_input.remove:
        try:
            await ctx.github.remove_label(issue, label.name)
        except Exception as exc:
            raise RuntimeError(
                f"failed to remove {label!r} from {issue.global_id()!r}"
            ) from exc