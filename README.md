# triagebot

Asynchronous handlers that automate triage of issues and pull requests:
reviewer assignment, label management, team pings, path mentions,
merge-commit warnings, summary notes and recording of merged commits.

Handlers talk to the issue tracker through `triagebot.github.GithubClient`
and keep state in a `triagebot.storage.Database`. Both work in memory:
`GithubClient` applies each action (comments, labels, assignees, body edits,
closing) to the `Issue` objects it is given and records posted comments in
`posted_comments`, and `MemoryDatabase` stores issue data and commits in
memory.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## What is inside

- `triagebot.github`: dataclasses for issues, labels, users, repositories,
  events (`IssuesEvent`, `IssueCommentEvent`) and teams; `parse_diff`, which
  splits a multi-file git diff into `FileDiff` pieces; the in-memory
  `GithubClient`, whose `known_labels` and `assignable` sets restrict which
  labels and users are accepted (raising `UnknownLabelsError` and
  `InvalidAssigneeError`); and `Context`, which holds the client, the bot's
  user name and the database.
- `triagebot.interactions`: `ErrorComment`, `PingComment`, and
  `EditIssueBody`, which keeps a named bot-owned section with embedded JSON
  data inside an issue body (`current_data`, `render`, `apply`).
- `triagebot.globs`: `GlobPattern`, shell-style globs with `*`, `**`, `?` and
  `[...]` classes, optionally case-insensitive; bad patterns raise `GlobError`.
- `triagebot.reviewers`: `AssignConfig`, `GitignorePattern`,
  `candidate_reviewers_from_names`, `find_reviewer_from_names` and
  `find_reviewers_from_diff`. Reviewers are drawn from ad-hoc groups, teams
  and an owners map of gitignore-style patterns; failures raise
  `TeamNotFound`, `NoReviewer` or `AllReviewersFiltered`.
- `triagebot.assign`: auto-assignment and welcome messages for new pull
  requests, warnings about non-default target branches and submodule
  changes, and `handle_command` for `AssignCommand` (claim, assign a user,
  release, `r?`).
- `triagebot.relabel`: `match_pattern`, `check_filter` and `handle_command`
  for label changes, with an allow-list for users outside the teams.
- `triagebot.autolabel`, `triagebot.prioritize`, `triagebot.nominate`,
  `triagebot.shortcut`: labels applied from changed files, new issues and
  PRs, other labels, prioritization, nominations and status shortcuts.
- `triagebot.ping`, `triagebot.mentions`, `triagebot.no_merges`: comments
  that ping a configured team, notify people interested in changed paths,
  or warn about merge commits (`compose_message` builds that warning).
- `triagebot.note`: summary notes (`NoteSummary`, `NoteRemove`) kept in the
  issue body.
- `triagebot.review_requested`, `triagebot.review_submitted`,
  `triagebot.close`, `triagebot.rfc_helper`: smaller event handlers.
- `triagebot.rustc_commits`: `parse_bors_message`, `pr_number_from_message`,
  `synchronize_commits`, and `RustcCommitsJob`, which records merged commits
  reported by the merge bot and walks back through missing parents.
- `triagebot.storage`: `Commit`, the abstract `Database`, `MemoryDatabase`,
  and `load_issue_data` / `IssueData` for per-issue handler state.

## Example

```python
from triagebot.github import parse_diff
from triagebot.reviewers import AssignConfig, find_reviewers_from_diff

config = AssignConfig(owners={"/compiler": ["compiler"], "*.js": ["js-reviewers"]})
files = parse_diff(diff_text)
print(find_reviewers_from_diff(config, files))
```

Handlers are coroutines; run them from your own event loop with a `Context`
that holds a `GithubClient`, a `Database` and the bot's user name.

## What this package does not do

- It does not talk to a real issue tracker over the network: `GithubClient`
  is an in-memory backend.
- It has no webhook server and no command parser for comment text; callers
  build the events and command objects themselves.
- It has no persistent database, only `MemoryDatabase`.
- It has no job scheduler: `RustcCommitsJob.run` must be called by the
  caller, and there is no cron-style schedule or list of default jobs.