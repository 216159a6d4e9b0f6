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
    Team,
    TeamMember,
    Teams,
    User,
)
from triagebot.nominate import NominateCommand, NominateConfig, NominateStyle, handle_command

CONFIG = NominateConfig(teams={"compiler": "T-compiler"})


def make_ctx():
    teams = Teams({"compiler": Team("compiler", [TeamMember("member", "member", 1)])})
    return Context(github=GithubClient(teams_data=teams))


def make_event(login="member", labels=()):
    issue = Issue(
        number=11,
        title="Regression",
        user=User("author"),
        repo=IssueRepository("rust-lang", "rust"),
        labels=list(labels),
    )
    return IssueCommentEvent(IssueCommentAction.CREATED, issue, Comment(user=User(login)))


@pytest.mark.asyncio
async def test_non_member_is_refused():
    ctx = make_ctx()
    event = make_event("outsider")
    await handle_command(ctx, CONFIG, event, NominateCommand("compiler", NominateStyle.DECISION))
    assert event.issue.labels == []
    (_, body), = ctx.github.posted_comments
    assert "restricted to members of" in body
    assert body.startswith("**Error**: ")


@pytest.mark.asyncio
async def test_decision_nomination_adds_team_and_style_labels():
    ctx = make_ctx()
    event = make_event()
    await handle_command(ctx, CONFIG, event, NominateCommand("compiler", NominateStyle.DECISION))
    assert event.issue.labels == [Label("T-compiler"), Label("I-nominated")]
    assert ctx.github.posted_comments == []


@pytest.mark.asyncio
async def test_beta_nomination_adds_beta_label():
    ctx = make_ctx()
    event = make_event()
    await handle_command(ctx, CONFIG, event, NominateCommand("compiler", NominateStyle.BETA))
    assert event.issue.labels == [Label("T-compiler"), Label("beta-nominated")]


@pytest.mark.asyncio
async def test_unknown_team_is_refused():
    ctx = make_ctx()
    event = make_event()
    await handle_command(ctx, CONFIG, event, NominateCommand("lang", NominateStyle.DECISION))
    assert event.issue.labels == []
    (_, body), = ctx.github.posted_comments
    assert "This team (`lang`) cannot be nominated for via this command" in body


@pytest.mark.asyncio
async def test_beta_approve_requires_beta_nomination():
    ctx = make_ctx()
    event = make_event()
    await handle_command(ctx, CONFIG, event, NominateCommand("compiler", NominateStyle.BETA_APPROVE))
    assert event.issue.labels == []
    (_, body), = ctx.github.posted_comments
    assert "is not beta-nominated" in body
    assert "`@rustbot beta-nominate <team>`" in body


@pytest.mark.asyncio
async def test_beta_approve_keeps_existing_labels():
    ctx = make_ctx()
    event = make_event(labels=[Label("beta-nominated"), Label("T-compiler")])
    await handle_command(ctx, CONFIG, event, NominateCommand("compiler", NominateStyle.BETA_APPROVE))
    assert event.issue.labels == [
        Label("beta-nominated"),
        Label("T-compiler"),
        Label("beta-accepted"),
    ]