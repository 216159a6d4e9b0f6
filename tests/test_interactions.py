import pytest

from triagebot.github import GithubClient, Issue, IssueRepository, User
from triagebot.interactions import (
    END_BOT,
    START_BOT,
    EditIssueBody,
    ErrorComment,
    PingComment,
    normalize_body,
)


def make_issue(body="Original body"):
    return Issue(
        number=7,
        title="t",
        user=User("octocat"),
        repo=IssueRepository("rust-lang", "rust"),
        body=body,
    )


def test_normalize_body():
    assert normalize_body("a\r\nb\r\n") == "a\nb\n"


def test_error_comment_body():
    comment = ErrorComment(make_issue(), "Only team members can close issues.")
    assert comment.body().startswith("**Error**: Only team members can close issues.\n\n")


@pytest.mark.asyncio
async def test_error_comment_post():
    client = GithubClient()
    issue = make_issue()
    comment = ErrorComment(issue, "bad")
    await comment.post(client)
    assert client.posted_comments == [(issue.global_id(), comment.body())]


@pytest.mark.asyncio
async def test_ping_comment():
    client = GithubClient()
    issue = make_issue()
    ping = PingComment(issue, ["alice", "bob"])
    assert ping.body().split() == ["@alice", "@bob"]
    await ping.post(client)
    assert client.posted_comments[0][1] == ping.body()


def test_current_data_absent():
    assert EditIssueBody(make_issue(), "ASSIGN").current_data() is None


def test_render_new_section():
    issue = make_issue()
    rendered = EditIssueBody(issue, "ASSIGN").render("", {"user": "x"})
    assert rendered.startswith("Original body\n\n" + START_BOT)
    assert rendered.endswith(END_BOT)
    assert "<!-- TRIAGEBOT_ASSIGN_START -->" in rendered
    assert '{"user":"x"}' in rendered


@pytest.mark.asyncio
async def test_apply_round_trip_and_replace():
    client = GithubClient()
    issue = make_issue()
    edit = EditIssueBody(issue, "ASSIGN")
    await edit.apply(client, "claimed", {"user": "alice"})
    assert edit.current_data() == {"user": "alice"}
    await edit.apply(client, "", {"user": None})
    assert edit.current_data() == {"user": None}
    assert issue.body.count(START_BOT) == 1
    assert issue.body.count("<!-- TRIAGEBOT_ASSIGN_START -->") == 1
    assert "claimed" not in issue.body


@pytest.mark.asyncio
async def test_second_section_inserted_before_end():
    client = GithubClient()
    issue = make_issue()
    await EditIssueBody(issue, "ASSIGN").apply(client, "", {"user": "a"})
    await EditIssueBody(issue, "SUMMARY").apply(client, "notes", {"entries": []})
    assert EditIssueBody(issue, "ASSIGN").current_data() == {"user": "a"}
    assert EditIssueBody(issue, "SUMMARY").current_data() == {"entries": []}
    assert issue.body.endswith(END_BOT)
    assert issue.body.count(END_BOT) == 1


def test_crlf_body_is_read():
    issue = make_issue()
    edit = EditIssueBody(issue, "ASSIGN")
    issue.body = edit.render("", {"user": "z"}).replace("\n", "\r\n")
    assert edit.current_data() == {"user": "z"}


def test_invalid_data_raises():
    issue = make_issue()
    edit = EditIssueBody(issue, "ASSIGN")
    issue.body = edit.render("", {"user": "z"}).replace('{"user":"z"}', "{not json")
    with pytest.raises(ValueError):
        edit.current_data()


def test_missing_end_marker_raises():
    issue = make_issue(body="x" + START_BOT + "<!-- TRIAGEBOT_ASSIGN_START -->\n")
    with pytest.raises(ValueError):
        EditIssueBody(issue, "ASSIGN").current_data()