"""Summary notes kept in a bot-managed section of an issue's top comment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from triagebot.github import Context
from triagebot.interactions import EditIssueBody

log = logging.getLogger(__name__)

SECTION_ID = "SUMMARY"


@dataclass
class NoteDataEntry:
    """One note: its title, the comment it points to and who wrote it."""

    title: str
    comment_url: str
    author: str

    def to_markdown(self) -> str:
        return f'\n- ["{self.title}" by @{self.author}]({self.comment_url})'

    def to_data(self) -> dict[str, str]:
        return {"title": self.title, "comment_url": self.comment_url, "author": self.author}


@dataclass(frozen=True)
class NoteSummary:
    """Add a note titled ``title`` for the comment, or retitle its existing note."""

    title: str


@dataclass(frozen=True)
class NoteRemove:
    """Remove the note titled ``title``."""

    title: str


@dataclass
class NoteData:
    """All notes of an issue, keyed by the URL of the comment each refers to."""

    entries_by_url: dict[str, NoteDataEntry] = field(default_factory=dict)

    def get_url_from_title(self, title: str) -> str | None:
        """Return the first URL, in sorted order, whose note has ``title``."""
        return next(
            (url for url, entry in sorted(self.entries_by_url.items()) if entry.title == title),
            None,
        )

    def remove_by_title(self, title: str) -> NoteDataEntry | None:
        """Remove and return the note with ``title``, or None if there is none."""
        url = self.get_url_from_title(title)
        if url is None:
            log.debug("unable to remove entry with title %r", title)
            return None
        entry = self.entries_by_url.pop(url)
        log.debug("removed entry %r", entry)
        return entry

    def to_markdown(self) -> str:
        if not self.entries_by_url:
            return ""
        parts = ["\n### Summary Notes\n"]
        parts.extend(entry.to_markdown() for _, entry in sorted(self.entries_by_url.items()))
        parts.append("\n\nGenerated by triagebot, see the note command help for how to add more")
        return "".join(parts)

    def to_data(self) -> dict[str, Any]:
        return {"entries_by_url": {url: e.to_data() for url, e in self.entries_by_url.items()}}

    @classmethod
    def from_data(cls, data: Any) -> NoteData:
        """Build notes from stored JSON data; None gives an empty set of notes."""
        if data is None:
            return cls()
        try:
            raw = data["entries_by_url"]
            entries = {
                url: NoteDataEntry(
                    title=item["title"], comment_url=item["comment_url"], author=item["author"]
                )
                for url, item in raw.items()
            }
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"deserializing note data {data!r} failed: {exc!r}") from exc
        return cls(entries)


async def handle_command(ctx: Context, event: Any, cmd: NoteSummary | NoteRemove) -> None:
    """Add, retitle or remove a note and rewrite the notes section."""
    issue = event.issue
    section = EditIssueBody(issue, SECTION_ID)
    current = NoteData.from_data(section.current_data())

    comment_url = event.html_url()
    if comment_url is None:
        raise ValueError("the event has no comment URL")
    author = event.user().login

    if isinstance(cmd, NoteSummary):
        existing = current.entries_by_url.get(comment_url)
        if existing is not None:
            existing.title = cmd.title
            log.debug("updated existing entry %r", existing)
        else:
            current.entries_by_url[comment_url] = NoteDataEntry(cmd.title, comment_url, author)
    else:
        current.remove_by_title(cmd.title)

    await section.apply(ctx.github, current.to_markdown(), current.to_data())