"""Issue-tracker data model and an in-memory client that applies bot actions."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any

_DIFF_HEADER = re.compile(r"^diff --git .* b/(.*)$", re.MULTILINE)


@dataclass(frozen=True)
class Label:
    name: str


@dataclass(frozen=True)
class User:
    login: str
    id: int | None = None


@dataclass(frozen=True)
class FileDiff:
    """One file's section of a unified diff."""

    path: str
    diff: str


def parse_diff(diff: str) -> list[FileDiff]:
    """Split a multi-file git diff into per-file sections."""
    headers = [(m.start(), m.group(1)) for m in _DIFF_HEADER.finditer(diff)]
    ends = [start for start, _ in headers[1:]] + [len(diff)]
    return [
        FileDiff(path=path, diff=diff[start:end])
        for (start, path), end in zip(headers, ends)
    ]


@dataclass(frozen=True)
class IssueRepository:
    organization: str
    repository: str

    @property
    def full_name(self) -> str:
        return f"{self.organization}/{self.repository}"


@dataclass(frozen=True)
class Repository:
    full_name: str
    default_branch: str = "master"


@dataclass(frozen=True)
class BranchRef:
    git_ref: str
    repo: Repository


@dataclass
class Issue:
    number: int
    title: str
    user: User
    repo: IssueRepository
    body: str = ""
    html_url: str = ""
    labels: list[Label] = field(default_factory=list)
    assignees: list[User] = field(default_factory=list)
    pull_request: bool = False
    state: str = "open"
    draft: bool = False
    merged: bool = False
    merge_commit_sha: str | None = None
    base: BranchRef | None = None
    head: BranchRef | None = None

    def is_pr(self) -> bool:
        return self.pull_request

    def is_open(self) -> bool:
        return self.state == "open"

    def global_id(self) -> str:
        return f"{self.repo.full_name}#{self.number}"

    def contain_assignee(self, login: str) -> bool:
        wanted = login.lower()
        return any(a.login.lower() == wanted for a in self.assignees)

    def has_label(self, name: str) -> bool:
        return any(label.name == name for label in self.labels)

    def repository(self) -> IssueRepository:
        return self.repo


class IssuesAction(enum.Enum):
    OPENED = "opened"
    EDITED = "edited"
    DELETED = "deleted"
    CLOSED = "closed"
    REOPENED = "reopened"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    LABELED = "labeled"
    UNLABELED = "unlabeled"
    SYNCHRONIZE = "synchronize"
    READY_FOR_REVIEW = "ready_for_review"
    REVIEW_REQUESTED = "review_requested"
    CONVERTED_TO_DRAFT = "converted_to_draft"


@dataclass
class IssuesEvent:
    action: IssuesAction
    issue: Issue
    repository: Repository
    sender: User
    label: Label | None = None
    requested_reviewer: User | None = None

    def user(self) -> User:
        return self.issue.user

    def html_url(self) -> str:
        return self.issue.html_url

    def comment_body(self) -> str:
        return self.issue.body


class IssueCommentAction(enum.Enum):
    CREATED = "created"
    EDITED = "edited"
    DELETED = "deleted"


class PullRequestReviewState(enum.Enum):
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    DISMISSED = "dismissed"
    PENDING = "pending"


@dataclass
class Comment:
    user: User
    body: str = ""
    html_url: str = ""
    pr_review_state: PullRequestReviewState | None = None


@dataclass
class IssueCommentEvent:
    action: IssueCommentAction
    issue: Issue
    comment: Comment
    repository: Repository | None = None

    def user(self) -> User:
        return self.comment.user

    def html_url(self) -> str:
        return self.comment.html_url

    def comment_body(self) -> str:
        return self.comment.body


@dataclass(frozen=True)
class TeamMember:
    name: str
    github: str
    github_id: int
    is_lead: bool = False


@dataclass(frozen=True)
class GithubTeam:
    org: str
    name: str


@dataclass
class Team:
    name: str
    members: list[TeamMember] = field(default_factory=list)
    kind: str = "team"
    github: list[GithubTeam] | None = None


@dataclass
class Teams:
    teams: dict[str, Team] = field(default_factory=dict)


class UnknownLabelsError(Exception):
    """Raised when labels that do not exist in the repository are added."""

    def __init__(self, labels: list[str]):
        self.labels = list(labels)
        super().__init__(f"Unknown labels: {', '.join(self.labels)}")


class InvalidAssigneeError(Exception):
    """Raised when a user cannot be assigned to an issue."""

    def __init__(self, login: str):
        self.login = login
        super().__init__(f"invalid assignee {login}")


@dataclass
class GithubClient:
    """An in-memory tracker backend that applies the bot's actions to issues.

    ``known_labels`` and ``assignable`` of ``None`` accept every label or user.
    When ``team_data_available`` is false, team queries raise ``ConnectionError``.
    """

    teams_data: Teams = field(default_factory=Teams)
    known_labels: set[str] | None = None
    assignable: set[str] | None = None
    contributors: dict[str, set[str]] = field(default_factory=dict)
    issue_diffs: dict[str, str] = field(default_factory=dict)
    issue_commits: dict[str, list[Any]] = field(default_factory=dict)
    rust_commits: dict[str, Any] = field(default_factory=dict)
    team_data_available: bool = True
    posted_comments: list[tuple[str, str]] = field(default_factory=list)

    def _require_team_data(self) -> Teams:
        if not self.team_data_available:
            raise ConnectionError("team data is unavailable")
        return self.teams_data

    async def post_comment(self, issue: Issue, body: str) -> None:
        self.posted_comments.append((issue.global_id(), body))

    async def edit_body(self, issue: Issue, body: str) -> None:
        issue.body = body

    async def add_labels(self, issue: Issue, labels: list[Label]) -> None:
        if self.known_labels is not None:
            unknown = [l.name for l in labels if l.name not in self.known_labels]
            if unknown:
                raise UnknownLabelsError(unknown)
        for label in labels:
            if not issue.has_label(label.name):
                issue.labels.append(label)

    async def remove_label(self, issue: Issue, label: str) -> None:
        issue.labels = [l for l in issue.labels if l.name != label]

    async def set_assignee(self, issue: Issue, login: str) -> None:
        if self.assignable is not None:
            allowed = {name.lower() for name in self.assignable}
            if login.lower() not in allowed:
                raise InvalidAssigneeError(login)
        issue.assignees = [User(login=login)]

    async def remove_assignees(self, issue: Issue, login: str | None) -> None:
        """Remove one assignee by login, or all of them when ``login`` is None."""
        if login is None:
            issue.assignees = []
        else:
            wanted = login.lower()
            issue.assignees = [a for a in issue.assignees if a.login.lower() != wanted]

    async def close(self, issue: Issue) -> None:
        issue.state = "closed"

    async def diff(self, issue: Issue) -> list[FileDiff] | None:
        if not issue.is_pr():
            return None
        return parse_diff(self.issue_diffs.get(issue.global_id(), ""))

    async def commits(self, issue: Issue) -> list[Any]:
        return list(self.issue_commits.get(issue.global_id(), []))

    async def files(self, issue: Issue) -> list[str]:
        diff = await self.diff(issue)
        return [fd.path for fd in diff or []]

    async def is_new_contributor(self, repository: Repository, login: str) -> bool:
        return login not in self.contributors.get(repository.full_name, set())

    async def is_team_member(self, login: str) -> bool:
        teams = self._require_team_data()
        return any(
            member.github == login
            for team in teams.teams.values()
            for member in team.members
        )

    async def get_team(self, name: str) -> Team | None:
        return self._require_team_data().teams.get(name)

    async def teams(self) -> Teams:
        return self._require_team_data()

    async def rust_commit(self, sha: str) -> Any | None:
        return self.rust_commits.get(sha)


@dataclass
class Context:
    github: GithubClient
    username: str = "rustbot"
    db: Any = None