"""Persistent state: per-issue handler data and recorded compiler commits."""

from __future__ import annotations

import abc
import json
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from triagebot.github import Issue


@dataclass(frozen=True)
class Commit:
    """A merge commit on the main branch and the pull request it landed."""

    sha: str
    parent_sha: str
    time: datetime
    pr: int | None = None


class Database(abc.ABC):
    """Storage used by handlers and jobs."""

    @abc.abstractmethod
    async def load_issue_data(self, issue_id: str, key: str) -> Any | None:
        """Return the JSON value stored for an issue under ``key``, or None."""

    @abc.abstractmethod
    async def save_issue_data(self, issue_id: str, key: str, data: Any) -> None:
        """Store a JSON value for an issue under ``key``."""

    @abc.abstractmethod
    async def record_commit(self, commit: Commit) -> None:
        """Record a commit; recording one already known changes nothing."""

    @abc.abstractmethod
    async def has_commit(self, sha: str) -> bool:
        """Return whether a commit has been recorded."""

    @abc.abstractmethod
    async def missing_commits(self) -> list[str]:
        """Return parent hashes of recorded commits that are not recorded themselves."""


class MemoryDatabase(Database):
    """A database kept in memory; values are stored as serialized JSON."""

    def __init__(self) -> None:
        self._issue_data: dict[tuple[str, str], str] = {}
        self._commits: dict[str, Commit] = {}

    async def load_issue_data(self, issue_id: str, key: str) -> Any | None:
        raw = self._issue_data.get((issue_id, key))
        return None if raw is None else json.loads(raw)

    async def save_issue_data(self, issue_id: str, key: str, data: Any) -> None:
        self._issue_data[(issue_id, key)] = json.dumps(data)

    async def record_commit(self, commit: Commit) -> None:
        self._commits.setdefault(commit.sha, commit)

    async def has_commit(self, sha: str) -> bool:
        return sha in self._commits

    async def missing_commits(self) -> list[str]:
        missing: list[str] = []
        for commit in self._commits.values():
            parent = commit.parent_sha
            if parent not in self._commits and parent not in missing:
                missing.append(parent)
        return missing


@dataclass
class IssueData:
    """Handler state for one issue, saved back with :meth:`save`."""

    db: Database
    issue_id: str
    key: str
    data: Any

    async def save(self) -> None:
        await self.db.save_issue_data(self.issue_id, self.key, self.data)


async def load_issue_data(
    db: Database,
    issue: Issue,
    key: str,
    factory: Callable[[], Any] = dict,
) -> IssueData:
    """Load the state stored for ``issue`` under ``key``; ``factory()`` supplies it when absent."""
    issue_id = issue.global_id()
    stored = await db.load_issue_data(issue_id, key)
    return IssueData(db, issue_id, key, factory() if stored is None else stored)