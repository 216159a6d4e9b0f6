"""Comments posted by the bot and the bot-managed section of an issue body."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from triagebot.github import GithubClient, Issue

START_BOT = "<!-- TRIAGEBOT_START -->\n\n"
END_BOT = "<!-- TRIAGEBOT_END -->"


def normalize_body(body: str) -> str:
    """Convert CRLF line endings to LF."""
    return body.replace("\r\n", "\n")


class ErrorComment:
    """An error message addressed to the issue."""

    def __init__(self, issue: Issue, message: str):
        self.issue = issue
        self.message = str(message)

    def body(self) -> str:
        return (
            f"**Error**: {self.message}\n"
            "\n"
            "Please file an issue against triagebot if there's a problem with "
            "this bot, or reach out on #t-infra on Zulip.\n"
        )

    async def post(self, client: GithubClient) -> None:
        await client.post_comment(self.issue, self.body())


class PingComment:
    """A comment that mentions a list of users."""

    def __init__(self, issue: Issue, users: list[str]):
        self.issue = issue
        self.users = list(users)

    def body(self) -> str:
        return "".join(f"@{user} " for user in self.users)

    async def post(self, client: GithubClient) -> None:
        await client.post_comment(self.issue, self.body())


class EditIssueBody:
    """Maintains one named, bot-owned section with JSON data in an issue body."""

    def __init__(self, issue: Issue, id: str):
        self.issue = issue
        self.id = id

    @property
    def _start_section(self) -> str:
        return f"<!-- TRIAGEBOT_{self.id}_START -->\n"

    @property
    def _end_section(self) -> str:
        return f"\n<!-- TRIAGEBOT_{self.id}_END -->\n"

    @property
    def _data_start(self) -> str:
        return f"\n<!-- TRIAGEBOT_{self.id}_DATA_START$$"

    @property
    def _data_end(self) -> str:
        return f"$$TRIAGEBOT_{self.id}_DATA_END -->\n"

    def _section_bounds(self, body: str) -> tuple[int, int] | None:
        if START_BOT not in body:
            return None
        start = body.find(self._start_section)
        if start == -1:
            return None
        end = body.find(self._end_section)
        if end == -1:
            raise ValueError(f"section {self.id} has no end marker")
        return start, end + len(self._end_section)

    def _current(self) -> str | None:
        body = normalize_body(self.issue.body)
        bounds = self._section_bounds(body)
        if bounds is None:
            return None
        return body[bounds[0]:bounds[1]]

    def current_data(self) -> Any | None:
        """Return the JSON data stored in this section, or None if absent."""
        section = self._current()
        if section is None:
            return None
        start = section.find(self._data_start)
        end = section.find(self._data_end)
        if start == -1 or end == -1:
            raise ValueError(f"section {self.id} has no data block")
        text = section[start + len(self._data_start):end]
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"deserializing data {text!r} failed: {exc}") from exc

    def render(self, text: str, data: Any) -> str:
        """Return the issue body with this section set to ``text`` and ``data``."""
        body = normalize_body(self.issue.body)
        data_section = (
            self._data_start
            + json.dumps(data, separators=(",", ":"), ensure_ascii=False)
            + self._data_end
        )
        bot_section = self._start_section + text + data_section + self._end_section
        empty_section = self._start_section + self._end_section
        all_new = "\n\n" + START_BOT + bot_section + END_BOT

        if START_BOT not in body:
            return body + all_new

        bounds = self._section_bounds(body)
        if bounds is None:
            idx = body.find(END_BOT)
            if idx == -1:
                raise ValueError("bot section has no end marker")
            return body[:idx] + bot_section + body[idx:]

        start, end = bounds
        body = body[:start] + bot_section + body[end:]
        if bot_section == empty_section and all_new in body:
            body = body.replace(all_new, "", 1)
        return body

    async def apply(self, client: GithubClient, text: str, data: Any) -> None:
        await client.edit_body(self.issue, self.render(text, data))