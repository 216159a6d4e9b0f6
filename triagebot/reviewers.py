"""Reviewer selection from ad-hoc groups, teams and the owners map."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from triagebot.github import FileDiff, Issue, Teams


@dataclass
class AssignConfig:
    """The ``[assign]`` configuration table."""

    owners: dict[str, list[str]] = field(default_factory=dict)
    adhoc_groups: dict[str, list[str]] = field(default_factory=dict)
    users_on_vacation: set[str] = field(default_factory=set)
    contributing_url: str | None = None
    warn_non_default_branch: bool = False

    def is_on_vacation(self, user: str) -> bool:
        wanted = user.lower()
        return any(wanted == name.lower() for name in self.users_on_vacation)


class FindReviewerError(Exception):
    """Raised when no reviewer can be chosen."""

    def _key(self) -> tuple:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FindReviewerError):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self), self._key()))


class TeamNotFound(FindReviewerError):
    """A slashed name matched neither a group nor a team."""

    def __init__(self, team: str):
        self.team = team
        super().__init__(team)

    def _key(self) -> tuple:
        return (self.team,)

    def __str__(self) -> str:
        return (
            f"Team or group `{self.team}` not found.\n"
            "\n"
            "rust-lang team names can be found in the team repository.\n"
            "Reviewer group names can be found in `triagebot.toml` in this repo."
        )

    def __repr__(self) -> str:
        return f"TeamNotFound({self.team!r})"


class NoReviewer(FindReviewerError):
    """No reviewer could be found, for example because groups form a cycle."""

    def __init__(self, initial: list[str]):
        self.initial = list(initial)
        super().__init__(self.initial)

    def _key(self) -> tuple:
        return (tuple(self.initial),)

    def __str__(self) -> str:
        return (
            f"No reviewers could be found from initial request `{','.join(self.initial)}`\n"
            "This repo may be misconfigured.\n"
            "Use r? to specify someone else to assign."
        )

    def __repr__(self) -> str:
        return f"NoReviewer(initial={self.initial!r})"


class AllReviewersFiltered(FindReviewerError):
    """Every candidate was excluded (author, assignee or on vacation)."""

    def __init__(self, initial: list[str], filtered: list[str]):
        self.initial = list(initial)
        self.filtered = list(filtered)
        super().__init__(self.initial, self.filtered)

    def _key(self) -> tuple:
        return (tuple(self.initial), tuple(self.filtered))

    def __str__(self) -> str:
        return (
            f"Could not assign reviewer from: `{','.join(self.initial)}`.\n"
            f"User(s) `{','.join(self.filtered)}` are either the PR author, already "
            "assigned, or on vacation, and there are no other candidates.\n"
            "Use r? to specify someone else to assign."
        )

    def __repr__(self) -> str:
        return f"AllReviewersFiltered(initial={self.initial!r}, filtered={self.filtered!r})"


def _glob_to_regex(glob: str) -> str:
    out: list[str] = []
    i = 0
    n = len(glob)
    while i < n:
        c = glob[i]
        if c == "*":
            if glob.startswith("**", i) and (i == 0 or glob[i - 1] == "/"):
                end = i + 2
                if end == n:
                    out.append(".*")
                    i = end
                    continue
                if glob[end] == "/":
                    out.append("(?:.*/)?")
                    i = end + 1
                    continue
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            close = glob.find("]", i + 2)
            if close == -1:
                raise ValueError(f"unclosed character class in {glob!r}")
            content = glob[i + 1:close]
            negated = content[:1] in ("!", "^")
            if negated:
                content = content[1:]
            body = "".join("-" if ch == "-" else re.escape(ch) for ch in content)
            out.append("[" + ("^/" if negated else "") + body + "]")
            i = close + 1
        elif c == "\\":
            if i + 1 >= n:
                raise ValueError(f"dangling escape in {glob!r}")
            out.append(re.escape(glob[i + 1]))
            i += 2
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


class GitignorePattern:
    """A single gitignore-style line rooted at the repository top."""

    def __init__(self, line: str):
        self.line = line
        self._regex: re.Pattern[str] | None = None
        self._whitelist = False
        self._only_dir = False

        text = line.rstrip(" ")
        if text.endswith("\\") and len(text) < len(line):
            text += " "
        if not text or text.startswith("#"):
            return
        absolute = False
        if text.startswith("\\!") or text.startswith("\\#"):
            text = text[1:]
            absolute = text.startswith("/")
        else:
            if text.startswith("!"):
                self._whitelist = True
                text = text[1:]
            if text.startswith("/"):
                text = text[1:]
                absolute = True
        if text.endswith("/"):
            self._only_dir = True
            text = text[:-1]
        if not text:
            return
        actual = text
        has_doublestar_prefix = actual.startswith("**/") or actual == "**"
        if not absolute and "/" not in actual and not has_doublestar_prefix:
            actual = "**/" + actual
        if actual.endswith("/**"):
            actual += "/*"
        self._regex = re.compile(_glob_to_regex(actual), re.DOTALL)

    def matches(self, path: str) -> bool:
        """Return whether ``path`` (a file) or any of its parent directories is ignored."""
        if self._regex is None:
            return False
        parts = [part for part in path.split("/") if part]
        for depth in range(len(parts), 0, -1):
            is_dir = depth < len(parts)
            candidate = "/".join(parts[:depth])
            if self._only_dir and not is_dir:
                continue
            if self._regex.fullmatch(candidate):
                return not self._whitelist
        return False

    def __repr__(self) -> str:
        return f"GitignorePattern({self.line!r})"


def candidate_reviewers_from_names(
    teams: Teams,
    config: AssignConfig,
    issue: Issue,
    names: list[str],
) -> set[str]:
    """Expand groups and teams in ``names`` into the set of eligible usernames."""
    candidates: set[str] = set()
    seen: set[str] = set()
    group_expansion = list(names)
    filtered: list[str] = []
    org_prefix = f"{issue.repository().organization}/"
    author = issue.user.login.lower()

    def eligible(name: str) -> bool:
        lower = name.lower()
        ok = (
            lower != author
            and not config.is_on_vacation(name)
            and not any(lower == a.login.lower() for a in issue.assignees)
        )
        if not ok:
            filtered.append(name)
        return ok

    while group_expansion:
        group_or_user = group_expansion.pop().removeprefix("@")

        maybe_group = group_or_user.removeprefix(org_prefix)
        members = config.adhoc_groups.get(maybe_group)
        if members is not None:
            if maybe_group not in seen:
                seen.add(maybe_group)
                group_expansion.extend(m for m in members if eligible(m))
            continue

        maybe_team = group_or_user.removeprefix("rust-lang/")
        team = teams.teams.get(maybe_team)
        if team is not None:
            candidates.update(m.github for m in team.members if eligible(m.github))
            continue

        if "/" in group_or_user:
            raise TeamNotFound(group_or_user)

        if eligible(group_or_user):
            candidates.add(group_or_user)

    if not candidates:
        if filtered:
            raise AllReviewersFiltered(names, filtered)
        raise NoReviewer(names)
    return candidates


def find_reviewer_from_names(
    teams: Teams,
    config: AssignConfig,
    issue: Issue,
    names: list[str],
) -> str:
    """Pick one reviewer at random from the candidates for ``names``."""
    candidates = candidate_reviewers_from_names(teams, config, issue, names)
    return random.choice(sorted(candidates))


def find_reviewers_from_diff(config: AssignConfig, diff: list[FileDiff]) -> list[str]:
    """Return the sorted owners of the most-modified, most-specific owners paths."""
    if not diff:
        return []
    patterns: dict[str, GitignorePattern] = {}
    for owner_pattern in config.owners:
        try:
            patterns[owner_pattern] = GitignorePattern(owner_pattern)
        except ValueError as exc:
            raise ValueError(f"owner file pattern `{owner_pattern}` is not valid: {exc}") from exc

    counts: dict[str, int] = {}
    for file_diff in diff:
        longest = {
            pattern: len(pattern.split("/"))
            for pattern, matcher in patterns.items()
            if matcher.matches(file_diff.path)
        }
        max_len = max(longest.values(), default=0)
        best = [pattern for pattern, length in longest.items() if length == max_len]
        changed = sum(
            1
            for line in file_diff.diff.splitlines()
            if (line.startswith("+") and not line.startswith("+++"))
            or (line.startswith("-") and not line.startswith("---"))
        )
        for pattern in best:
            counts[pattern] = counts.get(pattern, 0) + 1 + changed

    max_count = max(counts.values(), default=0)
    return sorted(
        {
            owner
            for pattern, count in counts.items()
            if count == max_count
            for owner in config.owners[pattern]
        }
    )