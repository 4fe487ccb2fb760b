"""
Factories and pytest fixtures for testing suffixbot.

The factories build realistic pull request data: a template-conforming PR
body, a valid whois payload, its added-file patch and an SLD registry.
"""

import json
from collections.abc import Generator, Iterable
from pathlib import Path
from typing import Any

import pytest

from suffixbot.config import Config
from suffixbot.reserved_words import ReservedWordsSource
from suffixbot.sld_registry import SLDRegistry
from suffixbot.testing.mock import MockDNSClient, MockGitHubClient
from suffixbot.types.pulls import FileChange, FileStatus, PullRequestContext

DEFAULT_RESERVED_WORDS = ("admin", "api", "www", "mail", "root")

_OPERATION_CHOICES = (
    ("Registration", "Register a new domain name."),
    ("Update", "Update NS information or registrant email for an existing domain."),
    ("Remove", "Cancel my domain name."),
)


# ============================================================================
# Factories
# ============================================================================


def create_whois_payload(**overrides: Any) -> dict[str, Any]:
    """A valid whois record; keyword arguments replace individual fields."""
    payload: dict[str, Any] = {
        "registrant": "owner@example.com",
        "domain": "mycompany",
        "sld": "no.kg",
        "nameservers": ["ns1.example.com", "ns2.example.com"],
        "agree_to_agreements": {
            "registration_and_use_agreement": True,
            "acceptable_use_policy": True,
            "privacy_policy": True,
        },
    }
    payload.update(overrides)
    return payload


def create_patch(content: str) -> str:
    """Unified diff of a newly added file holding ``content``."""
    lines = content.split("\n")
    return f"@@ -0,0 +1,{len(lines)} @@\n" + "\n".join(f"+{line}" for line in lines)


def create_mock_file_change(
    filename: str = "whois/mycompany.no.kg.json",
    status: str = FileStatus.ADDED,
    content: dict[str, Any] | str | None = None,
) -> FileChange:
    """
    Build a FileChange; ``content`` (dict or raw text) becomes the patch of
    a non-removed file.
    """
    patch = None
    if content is not None and status != FileStatus.REMOVED:
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        patch = create_patch(text)
    return FileChange(filename=filename, status=status, patch=patch)


def create_pr_body(
    operations: Iterable[str] = ("Registration",),
    domain_confirmed: bool = True,
    confirmation_items: int = 9,
    checked_confirmations: int | None = None,
) -> str:
    """
    Pull request body following the request template.

    Args:
        operations: Operation types whose checkbox is ticked
        domain_confirmed: Tick the domain confirmation checkbox
        confirmation_items: Number of confirmation items present
        checked_confirmations: How many of them are ticked (default: all)
    """
    selected = set(operations)
    if checked_confirmations is None:
        checked_confirmations = confirmation_items

    def box(checked: bool) -> str:
        return "[x]" if checked else "[ ]"

    lines = ["## Operation Type"]
    lines.extend(f"- {box(name in selected)} {name}, {text}" for name, text in _OPERATION_CHOICES)
    lines.extend(["", "## Domain", f"- {box(domain_confirmed)} I confirm the domain name above", ""])
    lines.append("## Confirmation Items")
    lines.extend(
        f"- {box(index < checked_confirmations)} Confirmation item number {index + 1}"
        for index in range(confirmation_items)
    )
    return "\n".join(lines) + "\n"


def create_mock_context(
    title: str = "Registration: mycompany.no.kg",
    body: str | None = None,
    number: str = "42",
    author: str = "octocat",
    branch_name: str = "mycompany.no.kg-request-42",
    head_commit: str = "0123456789abcdef",
    files: Iterable[FileChange] | None = None,
) -> PullRequestContext:
    """A context for a valid registration unless overridden."""
    if body is None:
        body = create_pr_body()
    if files is None:
        files = [create_mock_file_change(content=create_whois_payload())]
    return PullRequestContext(
        title=title,
        body=body,
        number=number,
        author=author,
        branch_name=branch_name,
        head_commit=head_commit,
        files=tuple(files),
    )


def create_sld_registry_payload(statuses: dict[str, str] | None = None) -> dict[str, Any]:
    """Registry JSON mapping each suffix to ``statuses[suffix]`` (default: live no.kg)."""
    if statuses is None:
        statuses = {"no.kg": "live"}
    return {
        suffix: {
            "status": status,
            "operator": {
                "organization": f"{suffix} operator",
                "website": f"https://{suffix}",
                "created_at": "2024-01-01",
                "description": f"Public free suffix {suffix}",
            },
        }
        for suffix, status in statuses.items()
    }


def write_data_files(
    workspace: Path,
    reserved_words: Iterable[str] = DEFAULT_RESERVED_WORDS,
    sld_statuses: dict[str, str] | None = None,
) -> Config:
    """Write reserved_words.txt and public_sld_list.json; returns a Config for ``workspace``."""
    config = Config(workspace=workspace)
    content = "# Reserved words\n" + "\n".join(reserved_words) + "\n"
    config.reserved_words_path.write_text(content, encoding="utf-8")
    config.sld_list_path.write_text(
        json.dumps(create_sld_registry_payload(sld_statuses), indent=2), encoding="utf-8"
    )
    return config


# ============================================================================
# Mock Client Fixtures
# ============================================================================


@pytest.fixture
def mock_github() -> Generator[MockGitHubClient, None, None]:
    """
    Provide a MockGitHubClient for testing.

    Example:
        ```python
        def test_remove(mock_github):
            mock_github.configure_check_file_exists(response=True)
            ...
            assert mock_github.was_called("check_file_exists")
        ```
    """
    client = MockGitHubClient(repository="PublicFreeSuffix/PublicFreeSuffix")
    yield client
    client.reset()


@pytest.fixture
def mock_dns() -> Generator[MockDNSClient, None, None]:
    """Provide a MockDNSClient whose zones all exist."""
    client = MockDNSClient()
    yield client
    client.reset()


# ============================================================================
# Data Source Fixtures
# ============================================================================


@pytest.fixture
def suffix_config(tmp_path: Path) -> Config:
    """Config whose workspace holds a reserved-word list and a live ``no.kg`` registry."""
    return write_data_files(tmp_path)


@pytest.fixture
def reserved_words_source(suffix_config: Config) -> ReservedWordsSource:
    return ReservedWordsSource(
        suffix_config.reserved_words_path,
        cache_file=suffix_config.reserved_words_cache_path,
    )


@pytest.fixture
def sld_registry(suffix_config: Config) -> SLDRegistry:
    return SLDRegistry(suffix_config.sld_list_path, cache_file=suffix_config.sld_cache_path)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_whois_payload() -> dict[str, Any]:
    """Provide a valid whois record."""
    return create_whois_payload()


@pytest.fixture
def sample_context() -> PullRequestContext:
    """Provide a context for a valid registration of mycompany.no.kg."""
    return create_mock_context()
