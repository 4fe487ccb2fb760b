"""
Tests for the validation pipeline.

Feature: whois-validation
"""

import asyncio
import json
from datetime import timedelta
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from suffixbot.config import Config
from suffixbot.engine import Check, ValidationEngine
from suffixbot.exceptions import ServerError
from suffixbot.reserved_words import ReservedWordsSource
from suffixbot.sld_registry import SLDRegistry
from suffixbot.testing import (
    MockGitHubClient,
    create_mock_context,
    create_mock_file_change,
    create_pr_body,
    create_whois_payload,
    write_data_files,
)
from suffixbot.testing.fixtures import DEFAULT_RESERVED_WORDS
from suffixbot.types.validation import ErrorCategory


def make_engine(
    workspace: Path,
    github: MockGitHubClient | None = None,
    sld_statuses: dict[str, str] | None = None,
    reserved_words=DEFAULT_RESERVED_WORDS,
) -> ValidationEngine:
    config = write_data_files(workspace, reserved_words, sld_statuses)
    return ValidationEngine(
        config,
        ReservedWordsSource(config.reserved_words_path),
        SLDRegistry(config.sld_list_path),
        github,
    )


def registration_context(domain: str = "mycompany", **payload_overrides):
    payload = create_whois_payload(domain=domain, **payload_overrides)
    return create_mock_context(
        title=f"Registration: {domain}.no.kg",
        branch_name=f"{domain}.no.kg-request-42",
        files=[create_mock_file_change(f"whois/{domain}.no.kg.json", content=payload)],
    )


def validate(engine: ValidationEngine, context):
    return asyncio.run(engine.validate(context))


# ============================================================================
# Scenarios
# ============================================================================


def test_valid_registration(tmp_path: Path) -> None:
    """Scenario: valid registration passes every check."""
    result = validate(make_engine(tmp_path), create_mock_context())

    assert result.is_valid, result.errors
    assert result.errors == []
    assert result.details.action_type == "Registration"
    assert result.details.domain_name == "mycompany"
    assert result.details.sld == "no.kg"
    assert result.details.file_name == "whois/mycompany.no.kg.json"
    assert result.details.title_valid
    assert result.details.file_count_valid
    assert result.details.file_path_valid
    assert result.details.json_valid


def test_suffix_not_live_blocks_new_registration(tmp_path: Path) -> None:
    """Scenario: a reserved suffix rejects added whois files."""
    engine = make_engine(tmp_path, sld_statuses={"no.kg": "reserved"})

    result = validate(engine, create_mock_context())

    assert not result.is_valid
    assert result.errors == [
        'The SLD "no.kg" is currently in status "reserved" and is not available for new registrations.'
    ]
    assert result.categories == {ErrorCategory.SLD}


def test_suffix_not_live_still_allows_updates(tmp_path: Path) -> None:
    github = MockGitHubClient()
    github.configure_get_file_content(response=json.dumps(create_whois_payload()))
    engine = make_engine(tmp_path, github=github, sld_statuses={"no.kg": "reserved"})
    context = create_mock_context(
        title="Update: mycompany.no.kg",
        body=create_pr_body(operations=("Update",)),
        files=[create_mock_file_change(status="modified")],
    )

    result = validate(engine, context)

    assert result.is_valid, result.errors
    assert github.get_calls("get_file_content")[0].args == (
        "whois/mycompany.no.kg.json",
        context.head_commit,
    )


def test_remove_with_missing_base_file(tmp_path: Path) -> None:
    """Scenario: removing a file that is not on the base branch fails."""
    github = MockGitHubClient()
    github.configure_check_file_exists(response=False)
    context = create_mock_context(
        title="Remove: mycompany.no.kg",
        body=create_pr_body(operations=("Remove",)),
        files=[create_mock_file_change(status="removed")],
    )

    result = validate(make_engine(tmp_path, github=github), context)

    assert not result.is_valid
    assert result.errors == [
        "Cannot remove file 'whois/mycompany.no.kg.json' as it does not exist in the repository"
    ]
    assert github.get_calls("check_file_exists")[0].args == ("whois/mycompany.no.kg.json", "main")


def test_valid_remove(tmp_path: Path) -> None:
    github = MockGitHubClient()
    github.configure_check_file_exists(response=True)
    context = create_mock_context(
        title="Remove: mycompany.no.kg",
        body=create_pr_body(operations=("Remove",)),
        branch_name="anything",
        files=[create_mock_file_change(status="removed")],
    )

    result = validate(make_engine(tmp_path, github=github), context)

    assert result.is_valid, result.errors
    assert result.details.action_type == "Remove"
    assert not github.was_called("get_file_content")


def test_remove_requires_removed_status(tmp_path: Path) -> None:
    context = create_mock_context(
        title="Remove: mycompany.no.kg",
        body=create_pr_body(operations=("Remove",)),
        files=[create_mock_file_change(status="modified")],
    )

    result = validate(make_engine(tmp_path, github=MockGitHubClient()), context)

    assert result.errors == [
        "For Remove operation, file status must be 'removed', but got 'modified'"
    ]
    assert result.categories == {ErrorCategory.REMOVE_OPERATION}


def test_remove_lookup_failure_is_reported(tmp_path: Path) -> None:
    github = MockGitHubClient()
    github.configure_check_file_exists(error=ServerError("HTTP_500", "upstream down", 500))
    context = create_mock_context(
        title="Remove: mycompany.no.kg",
        body=create_pr_body(operations=("Remove",)),
        files=[create_mock_file_change(status="removed")],
    )

    result = validate(make_engine(tmp_path, github=github), context)

    assert result.errors == ["Error validating remove operation: upstream down"]


def test_remove_file_must_match_title(tmp_path: Path) -> None:
    github = MockGitHubClient()
    github.configure_check_file_exists(response=True)
    context = create_mock_context(
        title="Remove: mycompany.no.kg",
        body=create_pr_body(operations=("Remove",)),
        files=[create_mock_file_change("whois/other.no.kg.json", status="removed")],
    )

    result = validate(make_engine(tmp_path, github=github), context)

    assert result.errors == [
        "File name 'whois/other.no.kg.json' does not match domain in title 'mycompany.no.kg'",
        'Domain "mycompany.no.kg" in PR title does not match domain "other.no.kg" in filename',
    ]
    assert github.get_calls("check_file_exists")[0].args == ("whois/other.no.kg.json", "main")


def test_reserved_word_conflict(tmp_path: Path) -> None:
    """Scenario: a reserved domain label is rejected, naming the word."""
    result = validate(make_engine(tmp_path), registration_context("admin"))

    assert not result.is_valid
    assert result.categories == {ErrorCategory.RESERVED_WORDS}
    assert 'conflicts with reserved word "admin"' in result.errors[0]
    assert not result.details.json_valid


def test_reserved_words_are_case_insensitive(tmp_path: Path) -> None:
    """Property: "API" and "api" both fail when "api" is reserved."""
    engine = make_engine(tmp_path)

    upper = validate(engine, registration_context("API"))
    lower = validate(engine, registration_context("api"))

    assert not upper.is_valid
    assert not lower.is_valid
    assert 'reserved word "api"' in upper.errors[0]
    assert 'reserved word "api"' in lower.errors[0]


def test_empty_reserved_word_list_fails_closed(tmp_path: Path) -> None:
    config = write_data_files(tmp_path, reserved_words=())
    engine = ValidationEngine(
        config,
        ReservedWordsSource(config.reserved_words_path, fallback_words=()),
        SLDRegistry(config.sld_list_path),
    )

    result = validate(engine, registration_context())

    assert result.errors == [
        "Invalid domain: Unable to validate domain against reserved words because the "
        "reserved word list is unavailable"
    ]
    assert result.categories == {ErrorCategory.RESERVED_WORDS}
    assert result.warnings == ["Reserved words list unavailable; using built-in fallback list"]


def test_stale_sources_add_warnings(tmp_path: Path) -> None:
    config = write_data_files(tmp_path)
    engine = ValidationEngine(
        config,
        ReservedWordsSource(config.reserved_words_path, ttl=timedelta(0)),
        SLDRegistry(config.sld_list_path, ttl=timedelta(0)),
    )
    first = validate(engine, registration_context())
    config.reserved_words_path.unlink()
    config.sld_list_path.unlink()

    second = validate(engine, registration_context())

    assert first.warnings == []
    assert second.is_valid, second.errors
    assert second.warnings == [
        "SLD list could not be refreshed; using expired cached copy",
        "Reserved words list could not be refreshed; using expired cached copy",
    ]
    assert second.to_dict()["warnings"] == second.warnings


def test_trailing_newline_field_values_are_rejected(tmp_path: Path) -> None:
    context = registration_context(
        registrant="owner@example.com\n",
        nameservers=["ns1.example.com\n", "ns2.example.com"],
    )

    result = validate(make_engine(tmp_path), context)

    assert not result.is_valid
    assert result.categories == {ErrorCategory.REGISTRANT, ErrorCategory.NAMESERVERS}
    assert result.details.json_valid is False


def test_reserved_word_with_trailing_newline_is_rejected(tmp_path: Path) -> None:
    context = create_mock_context(
        title="Registration: admin.no.kg",
        branch_name="admin.no.kg-request-42",
        files=[
            create_mock_file_change(
                "whois/admin.no.kg.json", content=create_whois_payload(domain="admin\n")
            )
        ],
    )

    result = validate(make_engine(tmp_path), context)

    assert result.categories == {ErrorCategory.DOMAIN}
    assert "alphanumeric" in result.errors[0]


def test_extra_field_fails_even_when_fields_valid(tmp_path: Path) -> None:
    """Scenario: the whois schema is closed."""
    result = validate(make_engine(tmp_path), registration_context(website="https://example.com"))

    assert result.errors == ["Unexpected fields found: website"]
    assert result.categories == {ErrorCategory.JSON_FORMAT}
    assert not result.details.json_valid


def test_every_failing_field_is_reported(tmp_path: Path) -> None:
    context = registration_context(registrant="not-an-email", nameservers=["ns1.example.com"])

    result = validate(make_engine(tmp_path), context)

    assert result.categories == {ErrorCategory.REGISTRANT, ErrorCategory.NAMESERVERS}
    assert result.errors[0].startswith("Invalid registrant: ")
    assert result.errors[1] == (
        "Invalid nameservers: nameservers must have at least 2 entries, currently has 1"
    )


def test_invalid_json_content(tmp_path: Path) -> None:
    context = create_mock_context(files=[create_mock_file_change(content="{not json")])

    result = validate(make_engine(tmp_path), context)

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Invalid JSON format: ")


def test_array_root_rejected(tmp_path: Path) -> None:
    context = create_mock_context(files=[create_mock_file_change(content="[1, 2]")])

    result = validate(make_engine(tmp_path), context)

    assert result.errors == ["JSON file root level must be a non-array object"]


def test_modified_file_without_client(tmp_path: Path) -> None:
    context = create_mock_context(
        title="Update: mycompany.no.kg",
        body=create_pr_body(operations=("Update",)),
        files=[create_mock_file_change(status="modified")],
    )

    result = validate(make_engine(tmp_path), context)

    assert result.errors == ["Unable to get file content: No source-control client configured"]


def test_registration_with_removed_file_status(tmp_path: Path) -> None:
    context = create_mock_context(files=[create_mock_file_change(status="removed")])

    result = validate(make_engine(tmp_path), context)

    assert result.categories == {ErrorCategory.FILE_STATUS}
    assert result.errors == [
        "For Registration operation, file status must be 'added' or 'modified', but got 'removed'"
    ]


def test_branch_name_uses_validated_record(tmp_path: Path) -> None:
    context = create_mock_context(branch_name="main")

    result = validate(make_engine(tmp_path), context)

    assert result.categories == {ErrorCategory.BRANCH_NAME}
    assert 'Expected format: "mycompany.no.kg-request-[NUMBER]"' in result.errors[0]


def test_unsupported_suffix_skips_dependent_checks(tmp_path: Path) -> None:
    payload = create_whois_payload(sld="xx.kg")
    context = create_mock_context(
        title="Registration: mycompany.xx.kg",
        branch_name="mycompany.xx.kg-request-42",
        files=[create_mock_file_change("whois/mycompany.xx.kg.json", content=payload)],
    )

    result = validate(make_engine(tmp_path, sld_statuses={"no.kg": "live", "so.kg": "live"}), context)

    assert result.errors == [
        'Domain suffix "xx.kg" is not supported. Supported suffixes are: no.kg, so.kg'
    ]
    assert result.details.action_type is None
    assert result.details.file_path_valid


def test_unavailable_registry_fails_closed(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    engine.config.sld_list_path.unlink()

    result = validate(engine, create_mock_context())

    assert result.errors == ["Unable to validate domain suffix due to SLD list unavailable"]


def test_independent_errors_accumulate(tmp_path: Path) -> None:
    context = create_mock_context(
        title="Register mycompany.no.kg",
        body=create_pr_body(checked_confirmations=8),
        files=[
            create_mock_file_change("whois/a.no.kg.json"),
            create_mock_file_change("whois/b.no.kg.json"),
        ],
    )

    result = validate(make_engine(tmp_path), context)

    assert [issue.category for issue in result.issues] == [
        ErrorCategory.TITLE_FORMAT,
        ErrorCategory.DESCRIPTION,
        ErrorCategory.FILE_COUNT,
    ]


def test_title_and_filename_mismatch(tmp_path: Path) -> None:
    payload = create_whois_payload(domain="othername")
    context = create_mock_context(
        branch_name="othername.no.kg-request-42",
        files=[create_mock_file_change("whois/othername.no.kg.json", content=payload)],
    )

    result = validate(make_engine(tmp_path), context)

    assert result.errors == [
        'Domain "mycompany.no.kg" in PR title does not match domain "othername.no.kg" in filename'
    ]


# ============================================================================
# Properties
# ============================================================================


def test_validation_is_idempotent(tmp_path: Path) -> None:
    """
    Property: Idempotence

    Validating the same context twice with warm caches SHALL yield identical
    errors and validity.
    """
    engine = make_engine(tmp_path)
    context = registration_context("admin", nameservers=["ns1.example.com"])

    first = validate(engine, context)
    second = validate(engine, context)

    assert first.errors == second.errors
    assert first.is_valid == second.is_valid
    assert first.to_dict() == second.to_dict()


def _bare_engine(pipeline: list[Check]) -> ValidationEngine:
    unused = Path("unused")
    return ValidationEngine(
        Config(),
        ReservedWordsSource(unused),
        SLDRegistry(unused),
        pipeline=pipeline,
    )


@given(outcomes=st.lists(st.booleans(), min_size=1, max_size=10))
@settings(max_examples=100)
def test_invalidity_is_monotonic(outcomes: list[bool]) -> None:
    """
    Property: Monotonic invalidity

    Once any step appends an error, every later step SHALL observe
    ``is_valid == False`` and the final result SHALL be invalid.
    """
    observed: list[bool] = []

    def make_step(fails: bool):
        async def step(state) -> None:
            observed.append(state.result.is_valid)
            if fails:
                state.fail(ErrorCategory.INTERNAL, "step failed")

        return step

    pipeline = [Check(f"step{i}", make_step(fails)) for i, fails in enumerate(outcomes)]
    result = asyncio.run(_bare_engine(pipeline).validate(create_mock_context()))

    for index, was_valid in enumerate(observed):
        assert was_valid == (not any(outcomes[:index]))
    assert result.is_valid == (not any(outcomes))


def test_unexpected_exception_becomes_internal_error() -> None:
    async def broken(state) -> None:
        raise RuntimeError("boom")

    async def never(state) -> None:
        raise AssertionError("steps after a crash must not run")

    engine = _bare_engine([Check("broken", broken), Check("never", never)])

    result = asyncio.run(engine.validate(create_mock_context()))

    assert result.errors == ["Internal validation error: boom"]
    assert result.categories == {ErrorCategory.INTERNAL}


def test_preconditions_skip_checks() -> None:
    ran: list[str] = []

    def record(name: str):
        async def step(state) -> None:
            ran.append(name)

        return step

    engine = _bare_engine([
        Check("needs_title", record("needs_title"), requires=("title_valid",)),
        Check("never_applies", record("never_applies"), applies=lambda state: False),
        Check("always", record("always")),
    ])

    asyncio.run(engine.validate(create_mock_context()))

    assert ran == ["always"]
