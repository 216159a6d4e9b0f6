import pytest

from triagebot.github import (
    Comment,
    Context,
    GithubClient,
    Issue,
    IssueCommentAction,
    IssueCommentEvent,
    IssueRepository,
    Label,
    User,
)
from triagebot.shortcut import STATUS_LABELS, ShortcutCommand, handle_command


def make_event(pr=True, labels=()):
    issue = Issue(
        number=9,
        title="t",
        user=User("author"),
        repo=IssueRepository("rust-lang", "rust"),
        labels=[Label(name) for name in labels],
        pull_request=pr,
    )
    return IssueCommentEvent(
        action=IssueCommentAction.CREATED, issue=issue, comment=Comment(user=User("author"))
    )


def label_names(event):
    return [label.name for label in event.issue.labels]


@pytest.mark.asyncio
async def test_only_on_pull_requests():
    ctx = Context(github=GithubClient())
    event = make_event(pr=False)
    await handle_command(ctx, event, ShortcutCommand.READY)
    assert any(
        'The "Ready" shortcut only works on pull requests.' in body
        for _, body in ctx.github.posted_comments
    )
    assert event.issue.labels == []


@pytest.mark.asyncio
async def test_author_replaces_review_label():
    ctx = Context(github=GithubClient())
    event = make_event(labels=["S-waiting-on-review", "T-compiler"])
    await handle_command(ctx, event, ShortcutCommand.AUTHOR)
    assert label_names(event) == ["T-compiler", "S-waiting-on-author"]


@pytest.mark.asyncio
@pytest.mark.parametrize("cmd", list(ShortcutCommand))
async def test_exactly_one_status_label(cmd):
    ctx = Context(github=GithubClient())
    event = make_event(labels=list(STATUS_LABELS))
    # Already carrying the target label: nothing changes.
    await handle_command(ctx, event, cmd)
    assert label_names(event) == list(STATUS_LABELS)

    event = make_event(labels=[s for s in STATUS_LABELS if s != cmd.label])
    await handle_command(ctx, event, cmd)
    assert label_names(event) == [cmd.label]


@pytest.mark.asyncio
async def test_blocked_on_unlabeled_pr():
    ctx = Context(github=GithubClient())
    event = make_event()
    await handle_command(ctx, event, ShortcutCommand.BLOCKED)
    assert label_names(event) == ["S-blocked"]