import pytest

from triagebot.close import handle_command
from triagebot.github import (
    Comment,
    Context,
    GithubClient,
    Issue,
    IssueCommentAction,
    IssueCommentEvent,
    IssueRepository,
    Team,
    TeamMember,
    Teams,
    User,
)


def make_ctx(**kwargs):
    teams = Teams({"infra": Team("infra", [TeamMember("Alice", "alice", 1)])})
    return Context(github=GithubClient(teams_data=teams, **kwargs))


def make_event(commenter):
    issue = Issue(
        number=7,
        title="Broken",
        user=User("reporter"),
        repo=IssueRepository("rust-lang", "rust"),
    )
    return IssueCommentEvent(
        action=IssueCommentAction.CREATED,
        issue=issue,
        comment=Comment(user=User(commenter), body="@rustbot close"),
    )


@pytest.mark.asyncio
async def test_team_member_closes_issue():
    ctx = make_ctx()
    event = make_event("alice")
    await handle_command(ctx, event)
    assert event.issue.state == "closed"
    assert ctx.github.posted_comments == []


@pytest.mark.asyncio
async def test_outsider_gets_error_comment():
    ctx = make_ctx()
    event = make_event("mallory")
    await handle_command(ctx, event)
    assert event.issue.is_open()
    [(issue_id, body)] = ctx.github.posted_comments
    assert issue_id == event.issue.global_id()
    assert "Only team members can close issues." in body


@pytest.mark.asyncio
async def test_unavailable_team_data_counts_as_outsider():
    ctx = make_ctx(team_data_available=False)
    event = make_event("alice")
    await handle_command(ctx, event)
    assert event.issue.is_open()
    assert len(ctx.github.posted_comments) == 1