import pytest

from triagebot.github import (
    Comment,
    Context,
    GithubClient,
    GithubTeam,
    Issue,
    IssueCommentAction,
    IssueCommentEvent,
    IssueRepository,
    Team,
    TeamMember,
    Teams,
    User,
)
from triagebot.ping import PingConfig, PingTeamConfig, handle_command


def member(login):
    return TeamMember(name=login, github=login, github_id=1)


def make_issue():
    return Issue(
        number=3,
        title="Bug",
        user=User("author"),
        repo=IssueRepository("rust-lang", "rust"),
    )


def make_event(issue, commenter="commenter"):
    return IssueCommentEvent(
        action=IssueCommentAction.CREATED,
        issue=issue,
        comment=Comment(user=User(commenter)),
    )


def make_ctx(teams, **kwargs):
    staff = Team("staff", [member("commenter")])
    return Context(github=GithubClient(teams_data=Teams({"staff": staff, **teams}), **kwargs))


def bodies(ctx):
    return [body for _, body in ctx.github.posted_comments]


@pytest.mark.asyncio
async def test_outsider_cannot_ping():
    ctx = make_ctx({})
    issue = make_issue()
    await handle_command(ctx, PingConfig(), make_event(issue, "stranger"), "staff")
    assert any("Only Rust team members can ping teams." in body for body in bodies(ctx))


@pytest.mark.asyncio
async def test_unavailable_team_data_counts_as_outsider():
    ctx = make_ctx({}, team_data_available=False)
    issue = make_issue()
    config = PingConfig({"staff": PingTeamConfig(message="hi")})
    await handle_command(ctx, config, make_event(issue), "staff")
    assert any("Only Rust team members can ping teams." in body for body in bodies(ctx))


@pytest.mark.asyncio
async def test_unconfigured_team():
    ctx = make_ctx({})
    issue = make_issue()
    await handle_command(ctx, PingConfig(), make_event(issue), "wg-x")
    assert any("(`wg-x`) cannot be pinged via this command" in body for body in bodies(ctx))


@pytest.mark.asyncio
async def test_team_missing_from_team_data():
    ctx = make_ctx({})
    issue = make_issue()
    config = PingConfig({"wg-x": PingTeamConfig(message="hi")})
    await handle_command(ctx, config, make_event(issue), "wg-x")
    assert any("does not exist in the team repository" in body for body in bodies(ctx))


@pytest.mark.asyncio
async def test_pings_members_and_adds_label():
    team = Team("wg-x", [member("alice"), member("bob")])
    ctx = make_ctx({"wg-x": team})
    issue = make_issue()
    config = PingConfig({"wg-x": PingTeamConfig(message="Please look", label="I-wg")})
    await handle_command(ctx, config, make_event(issue), "wg-x")
    assert bodies(ctx) == ["Please look\n\ncc @alice @bob"]
    assert [label.name for label in issue.labels] == ["I-wg"]


@pytest.mark.asyncio
async def test_pings_github_teams_in_same_org():
    team = Team(
        "wg-x",
        [member("alice")],
        github=[GithubTeam("rust-lang", "wg-x"), GithubTeam("elsewhere", "wg-x")],
    )
    ctx = make_ctx({"wg-x": team})
    issue = make_issue()
    await handle_command(ctx, PingConfig({"wg-x": PingTeamConfig(message="m")}), make_event(issue), "wg-x")
    assert bodies(ctx) == ["m\n\ncc @rust-lang/wg-x"]


@pytest.mark.asyncio
async def test_no_users_to_ping():
    ctx = make_ctx({"wg-x": Team("wg-x", [])})
    issue = make_issue()
    await handle_command(ctx, PingConfig({"wg-x": PingTeamConfig(message="m")}), make_event(issue), "wg-x")
    assert bodies(ctx) == ["m\n\nno known users to ping?"]


def test_get_by_name_direct_and_alias():
    cfg = PingTeamConfig(message="m", alias={"x"})
    config = PingConfig({"wg-x": cfg})
    assert config.get_by_name("wg-x") == ("wg-x", cfg)
    assert config.get_by_name("x") == ("wg-x", cfg)
    assert config.get_by_name("y") is None