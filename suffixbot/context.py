"""
Assembly of the ``PullRequestContext`` a validation run works on.

Context comes either from a GitHub Actions ``pull_request`` event payload
(``GITHUB_EVENT_PATH``) plus the files API, or from plain ``PR_*``
environment variables set by the workflow.
"""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from suffixbot.exceptions import ContextError
from suffixbot.types.pulls import FileChange, PullRequestContext

if TYPE_CHECKING:
    from suffixbot.clients.github import AsyncGitHubClient


def extract_content_from_patch(patch: str | None) -> str | None:
    """
    Rebuild an added file's text from its unified diff.

    Keeps ``+`` lines (without the marker) and drops the ``+++`` header.
    """
    if not patch:
        return None
    lines = [
        line[1:]
        for line in patch.split("\n")
        if line.startswith("+") and not line.startswith("+++")
    ]
    return "\n".join(lines)


def parse_files(raw: Any) -> tuple[FileChange, ...]:
    """Convert a JSON file list (``PR_FILES`` or the files API) to FileChange items."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ContextError(f"PR_FILES is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise ContextError("PR file list must be a JSON array")

    files = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("filename"), str):
            raise ContextError(f"PR file entry {index} has no filename")
        files.append(FileChange.from_dict(item))
    return tuple(files)


def context_from_env(environ: Mapping[str, str] | None = None) -> PullRequestContext:
    """
    Build the context from PR_TITLE, PR_BODY, PR_NUMBER, PR_AUTHOR,
    PR_FILES, PR_BRANCH and HEAD_SHA.

    Raises:
        ContextError: If PR_NUMBER or PR_FILES is missing or malformed
    """
    env = os.environ if environ is None else environ

    number = env.get("PR_NUMBER")
    if not number:
        raise ContextError("PR_NUMBER environment variable not set")

    raw_files = env.get("PR_FILES")
    if raw_files is None:
        raise ContextError("PR_FILES environment variable not set")

    return PullRequestContext(
        title=env.get("PR_TITLE", ""),
        body=env.get("PR_BODY", ""),
        number=str(number),
        author=env.get("PR_AUTHOR", ""),
        branch_name=env.get("PR_BRANCH", ""),
        head_commit=env.get("HEAD_SHA", ""),
        files=parse_files(raw_files),
    )


async def context_from_event(
    event_path: str | Path, github: "AsyncGitHubClient"
) -> PullRequestContext:
    """
    Build the context from a ``pull_request`` event payload, fetching the
    changed files through the GitHub API.

    Raises:
        ContextError: If the payload cannot be read or has no pull request
    """
    try:
        event = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ContextError(f"Could not read event payload {event_path}: {e}") from e

    pr = event.get("pull_request") if isinstance(event, dict) else None
    if not pr or not isinstance(pr, dict):
        raise ContextError("Could not find pull request data in event payload")

    number = pr.get("number")
    if number is None:
        raise ContextError("Pull request data in event payload has no number")

    files = await github.get_pull_request_files(number)
    head = pr.get("head") or {}

    return PullRequestContext(
        title=pr.get("title") or "",
        body=pr.get("body") or "",
        number=str(number),
        author=(pr.get("user") or {}).get("login", ""),
        branch_name=head.get("ref", ""),
        head_commit=head.get("sha", ""),
        files=tuple(files),
    )


async def load_context(
    environ: Mapping[str, str] | None = None,
    github: "AsyncGitHubClient | None" = None,
) -> PullRequestContext:
    """Prefer the event payload when GITHUB_EVENT_PATH is set and a client is available."""
    env = os.environ if environ is None else environ
    event_path = env.get("GITHUB_EVENT_PATH")

    if event_path and github is not None and not env.get("PR_FILES"):
        return await context_from_event(event_path, github)
    return context_from_env(env)
