"""
Validation checks for whois pull requests.

Pure rule helpers (title parsing, description structure, branch naming...)
sit at module level. ``ValidationChecks`` binds them to the data sources and
the source-control client and exposes one coroutine per pipeline step. Each
step records its outcome on ``PipelineState`` and never raises for a rule
violation or a failed lookup.
"""

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from suffixbot.config import (
    FILE_PATH_PATTERN,
    SLD_STATUS_LIVE,
    TITLE_PATTERN,
    WHOIS_FIELDS,
    WHOIS_FILENAME_PATTERN,
    Config,
)
from suffixbot.context import extract_content_from_patch
from suffixbot.exceptions import ContextError, RegistryUnavailableError, SuffixBotError
from suffixbot.logging import get_logger
from suffixbot.reserved_words import ReservedWordsSource
from suffixbot.sld_registry import SLDRegistry
from suffixbot.types.pulls import FileChange, FileStatus, PullRequestContext
from suffixbot.types.validation import (
    ErrorCategory,
    FieldResult,
    ParsedTitle,
    ValidationResult,
)
from suffixbot.types.whois import WhoisRecord
from suffixbot.validators import (
    validate_agreements,
    validate_domain_label,
    validate_nameservers,
    validate_registrant,
)

if TYPE_CHECKING:
    from suffixbot.clients.github import AsyncGitHubClient

logger = get_logger("engine")

_MARK = r"\[[\sxX]\]"
_CHECKBOX = re.compile(_MARK)
_CHECKED = re.compile(r"\[[xX]\]")
_OPERATION_TYPE_BLOCK = re.compile(
    rf"## Operation Type\s*-\s*{_MARK}\s*Registration,\s*Register a new domain name\."
    rf"\s*-\s*{_MARK}\s*Update,\s*Update NS information or registrant email for an existing domain\."
    rf"\s*-\s*{_MARK}\s*Remove,\s*Cancel my domain name\."
)
_DOMAIN_BLOCK = re.compile(rf"## Domain\s*-\s*{_MARK}")
_OPERATION_SECTION = re.compile(r"## Operation Type(.*?)(?=##|\Z)", re.DOTALL)


@dataclass
class PipelineState:
    """Mutable state threaded through one validation run."""

    context: PullRequestContext
    result: ValidationResult
    title: ParsedTitle | None = None
    file: FileChange | None = None
    record: WhoisRecord | None = None

    def fail(self, category: ErrorCategory, message: str) -> None:
        self.result.add_error(category, message)


# ============================================================================
# Pure rules
# ============================================================================


def parse_title(title: str) -> ParsedTitle | None:
    """Split ``"<Action>: <domain>.<sld>"``; None when the title does not match."""
    match = TITLE_PATTERN.match(title or "")
    if not match:
        return None
    action_type, domain_name, sld = match.groups()
    return ParsedTitle(action_type=action_type, domain_name=domain_name, sld=sld)


def count_checked(text: str) -> int:
    return sum(1 for box in _CHECKBOX.findall(text) if _CHECKED.fullmatch(box))


def validate_description(
    body: str, min_checked: int = 11, min_confirmations: int = 9
) -> list[str]:
    """
    Check the pull request body against the request template.

    Returns:
        One message per missing or incomplete part (empty when valid)
    """
    if not body or not isinstance(body, str):
        return ["PR description cannot be empty"]

    problems = []
    if not _OPERATION_TYPE_BLOCK.search(body):
        problems.append(
            "Operation Type section is missing or incomplete. Please select one operation type."
        )
    if not _DOMAIN_BLOCK.search(body):
        problems.append(
            "Domain section is missing or incomplete. Please confirm your domain name."
        )
    confirmation_block = re.compile(rf"## Confirmation Items(\s*-\s*{_MARK}.+){{{min_confirmations},}}")
    if not confirmation_block.search(body):
        problems.append(
            "Confirmation Items section is missing or incomplete. "
            f"All {min_confirmations} confirmation items must be present."
        )

    section = _OPERATION_SECTION.search(body)
    if section:
        selected = count_checked(section.group(1))
        if selected == 0:
            problems.append(
                "Please select one operation type by checking the corresponding checkbox."
            )
        elif selected > 1:
            problems.append(
                "Please select only one operation type. Multiple operation types are selected."
            )
    else:
        problems.append("Operation Type section is missing or malformed.")

    checked = count_checked(body)
    if checked < min_checked:
        problems.append(
            f"Please check all confirmation items. Only {checked} of {min_checked} "
            "required items are checked."
        )

    return problems


def validate_file_count(files: tuple[FileChange, ...] | list[FileChange], max_count: int = 1) -> FieldResult:
    if not files:
        return FieldResult.fail("PR must contain at least one file change")
    if len(files) > max_count:
        names = ", ".join(f.filename for f in files)
        return FieldResult.fail(
            f"PR can only contain {max_count} file change, currently contains "
            f"{len(files)} files: {names}"
        )
    return FieldResult.ok()


def validate_file_path(filename: str) -> FieldResult:
    if not FILE_PATH_PATTERN.match(filename or ""):
        return FieldResult.fail(
            "File path is incorrect. File must be located in the whois/ directory "
            f'and be a .json file. Current file: "{filename}"'
        )
    return FieldResult.ok()


def validate_title_file_consistency(title: ParsedTitle, filename: str) -> FieldResult:
    match = WHOIS_FILENAME_PATTERN.match(filename or "")
    if not match:
        return FieldResult.fail("Unable to extract domain information from filename")

    file_domain = match.group(1)
    if file_domain != title.full_domain:
        return FieldResult.fail(
            f'Domain "{title.full_domain}" in PR title does not match domain '
            f'"{file_domain}" in filename'
        )
    return FieldResult.ok()


def validate_branch_name(
    branch_name: str, domain: str, sld: str, base_branch: str = "main"
) -> FieldResult:
    """Branch must be ``<domain>.<sld>-request-<digits>`` and never the base branch."""
    if not branch_name or not isinstance(branch_name, str):
        return FieldResult.fail("Could not determine PR branch name.")

    expected_prefix = f"{domain}.{sld}-request-"
    if branch_name == base_branch:
        return FieldResult.fail(
            f'PR must not be opened from the {base_branch} branch. '
            f'Expected format: "{expected_prefix}[NUMBER]".'
        )

    if not re.fullmatch(rf"{re.escape(expected_prefix)}\d+", branch_name):
        return FieldResult.fail(
            f'PR branch name is invalid. Expected format: "{expected_prefix}[NUMBER]", '
            f'but got "{branch_name}".'
        )
    return FieldResult.ok()


def check_closed_schema(data: dict[str, Any]) -> list[str]:
    """Messages for missing and unexpected top-level WHOIS fields."""
    problems = []
    missing = [name for name in WHOIS_FIELDS if name not in data]
    if missing:
        problems.append(f"Missing required fields: {', '.join(missing)}")
    extra = [name for name in data if name not in WHOIS_FIELDS]
    if extra:
        problems.append(f"Unexpected fields found: {', '.join(extra)}")
    return problems


# ============================================================================
# Pipeline steps
# ============================================================================


class ValidationChecks:
    """Pipeline steps bound to their data sources."""

    def __init__(
        self,
        config: Config,
        reserved_words: ReservedWordsSource,
        sld_registry: SLDRegistry,
        source_control: "AsyncGitHubClient | None" = None,
    ) -> None:
        self.config = config
        self.reserved_words = reserved_words
        self.sld_registry = sld_registry
        self.source_control = source_control

    def source_warnings(self) -> list[str]:
        """Degradation notices from the most recent reserved-word and SLD lookups."""
        return [source.warning for source in (self.reserved_words, self.sld_registry) if source.warning]

    def reset_source_warnings(self) -> None:
        self.reserved_words.warning = None
        self.sld_registry.warning = None

    async def check_title(self, state: PipelineState) -> None:
        title = state.context.title
        if not title:
            state.fail(ErrorCategory.TITLE_FORMAT, "PR title cannot be empty")
            return

        parsed = parse_title(title)
        if parsed is None:
            state.fail(
                ErrorCategory.TITLE_FORMAT,
                'PR title format is incorrect. Correct format should be: '
                '"Registration/Update/Remove: {domain-name}.{sld}". '
                f'Current title: "{title}"',
            )
            return

        suffix = await self.validate_suffix(parsed.sld)
        if not suffix.is_valid:
            state.fail(ErrorCategory.SLD, suffix.error)
            return

        details = state.result.details
        details.title_valid = True
        details.action_type = parsed.action_type
        details.domain_name = parsed.domain_name
        details.sld = parsed.sld
        state.title = parsed

    async def check_description(self, state: PipelineState) -> None:
        problems = validate_description(
            state.context.body,
            min_checked=self.config.min_checked_items,
            min_confirmations=self.config.min_confirmation_items,
        )
        for problem in problems:
            state.fail(ErrorCategory.DESCRIPTION, problem)

    async def check_file_count(self, state: PipelineState) -> None:
        files = state.context.files
        outcome = validate_file_count(files, self.config.max_file_count)
        if not outcome.is_valid:
            state.fail(ErrorCategory.FILE_COUNT, outcome.error)
            return

        state.file = files[0]
        state.result.details.file_count_valid = True
        state.result.details.file_name = files[0].filename

    async def check_file_path(self, state: PipelineState) -> None:
        outcome = validate_file_path(state.file.filename)
        if not outcome.is_valid:
            state.fail(ErrorCategory.FILE_PATH, outcome.error)
            return
        state.result.details.file_path_valid = True

    async def check_registration_open(self, state: PipelineState) -> None:
        """Newly added whois files require the suffix to be ``live``."""
        sld = state.title.sld
        try:
            status = await self.sld_registry.get_status(sld)
        except RegistryUnavailableError:
            state.fail(
                ErrorCategory.SLD,
                f'Unable to verify the status of SLD "{sld}" because the SLD list is unavailable.',
            )
            return

        if status != SLD_STATUS_LIVE:
            state.fail(
                ErrorCategory.SLD,
                f'The SLD "{sld}" is currently in status "{status}" and is not available '
                "for new registrations.",
            )

    async def check_remove_operation(self, state: PipelineState) -> None:
        file = state.file
        title = state.title

        if file.status != FileStatus.REMOVED:
            state.fail(
                ErrorCategory.REMOVE_OPERATION,
                f"For Remove operation, file status must be 'removed', but got '{file.status}'",
            )
            return

        try:
            exists = await self._require_source_control().check_file_exists(
                file.filename, self.config.base_branch
            )
        except (SuffixBotError, OSError) as e:
            state.fail(
                ErrorCategory.REMOVE_OPERATION,
                f"Error validating remove operation: {getattr(e, 'message', None) or e}",
            )
            return

        if not exists:
            state.fail(
                ErrorCategory.REMOVE_OPERATION,
                f"Cannot remove file '{file.filename}' as it does not exist in the repository",
            )
            return

        if file.filename != title.expected_filename:
            state.fail(
                ErrorCategory.REMOVE_OPERATION,
                f"File name '{file.filename}' does not match domain in title '{title.full_domain}'",
            )
            return

        state.result.details.json_valid = True

    async def check_whois_content(self, state: PipelineState) -> None:
        """Fetch, parse and validate the whois JSON of a Registration/Update."""
        file = state.file
        action = state.title.action_type

        if file.status not in (FileStatus.ADDED, FileStatus.MODIFIED):
            state.fail(
                ErrorCategory.FILE_STATUS,
                f"For {action} operation, file status must be 'added' or 'modified', "
                f"but got '{file.status}'",
            )
            return

        try:
            content = await self.fetch_content(file, state.context)
        except (SuffixBotError, OSError, UnicodeDecodeError) as e:
            state.fail(
                ErrorCategory.JSON_FORMAT,
                f"Unable to get file content: {getattr(e, 'message', None) or e}",
            )
            return

        if not content:
            state.fail(ErrorCategory.JSON_FORMAT, "Unable to get file content")
            return

        try:
            data = json.loads(content)
        except ValueError as e:
            state.fail(ErrorCategory.JSON_FORMAT, f"Invalid JSON format: {e}")
            return

        if not isinstance(data, dict):
            state.fail(ErrorCategory.JSON_FORMAT, "JSON file root level must be a non-array object")
            return

        schema_problems = check_closed_schema(data)
        for problem in schema_problems:
            state.fail(ErrorCategory.JSON_FORMAT, problem)
        if schema_problems:
            return

        field_failures = await self.validate_fields(data)
        for category, message in field_failures:
            state.fail(category, message)
        if field_failures:
            return

        state.record = WhoisRecord.from_validated(data)
        state.result.details.json_valid = True

    async def check_title_file_consistency(self, state: PipelineState) -> None:
        outcome = validate_title_file_consistency(state.title, state.file.filename)
        if not outcome.is_valid:
            state.fail(ErrorCategory.CONSISTENCY, outcome.error)

    async def check_branch_name(self, state: PipelineState) -> None:
        record = state.record
        outcome = validate_branch_name(
            state.context.branch_name, record.domain, record.sld, self.config.base_branch
        )
        if not outcome.is_valid:
            state.fail(ErrorCategory.BRANCH_NAME, outcome.error)

    # ------------------------------------------------------------------
    # Helpers shared by several steps
    # ------------------------------------------------------------------

    async def validate_suffix(self, suffix: str) -> FieldResult:
        """Suffix must be present in the registry; an unavailable registry fails closed."""
        try:
            supported = await self.sld_registry.is_supported(suffix)
            if supported:
                return FieldResult.ok()
            live = sorted(await self.sld_registry.get_supported_suffixes())
        except RegistryUnavailableError:
            return FieldResult.fail(
                "Unable to validate domain suffix due to SLD list unavailable"
            )

        return FieldResult.fail(
            f'Domain suffix "{suffix}" is not supported. '
            f"Supported suffixes are: {', '.join(live)}"
        )

    async def validate_domain(self, domain: Any) -> tuple[ErrorCategory, FieldResult]:
        """Label format first, then the reserved-word deny-list (case-insensitive)."""
        label = validate_domain_label(domain)
        if not label.is_valid:
            return ErrorCategory.DOMAIN, label

        reserved = await self.reserved_words.get_reserved_words()
        if not reserved:
            return ErrorCategory.RESERVED_WORDS, FieldResult.fail(
                "Unable to validate domain against reserved words because the "
                "reserved word list is unavailable"
            )

        word = domain.lower()
        if word in reserved:
            return ErrorCategory.RESERVED_WORDS, FieldResult.fail(
                f'Domain "{domain}" conflicts with reserved word "{word}" and cannot be used. '
                "Reserved words are used to protect system functions and avoid confusion."
            )
        return ErrorCategory.DOMAIN, FieldResult.ok()

    async def validate_fields(self, data: dict[str, Any]) -> list[tuple[ErrorCategory, str]]:
        """Run every WHOIS field validator; returns ``(category, message)`` per failing field."""
        domain_category, domain_result = await self.validate_domain(data["domain"])

        sld = data["sld"]
        if not sld or not isinstance(sld, str):
            sld_result = FieldResult.fail("sld field is required and must be a string")
        else:
            sld_result = await self.validate_suffix(sld)

        outcomes = [
            ("registrant", ErrorCategory.REGISTRANT, validate_registrant(data["registrant"])),
            ("domain", domain_category, domain_result),
            ("sld", ErrorCategory.SLD, sld_result),
            ("nameservers", ErrorCategory.NAMESERVERS, validate_nameservers(data["nameservers"])),
            (
                "agree_to_agreements",
                ErrorCategory.AGREEMENTS,
                validate_agreements(data["agree_to_agreements"]),
            ),
        ]
        return [
            (category, f"Invalid {name}: {outcome.error}")
            for name, category, outcome in outcomes
            if not outcome.is_valid
        ]

    async def fetch_content(self, file: FileChange, context: PullRequestContext) -> str | None:
        """Added files are rebuilt from their patch; otherwise read at the head commit."""
        if file.status == FileStatus.ADDED and file.patch:
            return extract_content_from_patch(file.patch)
        return await self._require_source_control().get_file_content(
            file.filename, context.head_commit
        )

    def _require_source_control(self) -> "AsyncGitHubClient":
        if self.source_control is None:
            raise ContextError("No source-control client configured")
        return self.source_control
