"""Validation data models.

``ValidationResult`` is append-only: issues are added, never removed, so
``is_valid`` (derived from the issue list) can only go from True to False.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Category tag attached to every validation error when it is created."""

    TITLE_FORMAT = "titleFormat"
    DESCRIPTION = "descriptionLength"
    FILE_COUNT = "fileCount"
    FILE_PATH = "filePath"
    FILE_STATUS = "fileStatus"
    JSON_FORMAT = "jsonFormat"
    REGISTRANT = "registrant"
    DOMAIN = "domain"
    RESERVED_WORDS = "reservedWords"
    SLD = "sld"
    NAMESERVERS = "nameservers"
    AGREEMENTS = "agreements"
    CONSISTENCY = "consistency"
    REMOVE_OPERATION = "removeOperation"
    BRANCH_NAME = "branchName"
    INTERNAL = "internal"


@dataclass(frozen=True)
class FieldResult:
    """Outcome of a single field validator."""

    is_valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "FieldResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, error: str) -> "FieldResult":
        return cls(is_valid=False, error=error)


@dataclass(frozen=True)
class ValidationIssue:
    """A user-facing validation error."""

    category: ErrorCategory
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"category": self.category.value, "message": self.message}


@dataclass(frozen=True)
class ParsedTitle:
    """Components of a ``<Action>: <domain>.<sld>`` pull request title."""

    action_type: str  # "Registration", "Update", "Remove"
    domain_name: str
    sld: str

    @property
    def full_domain(self) -> str:
        return f"{self.domain_name}.{self.sld}"

    @property
    def expected_filename(self) -> str:
        return f"whois/{self.full_domain}.json"


@dataclass
class ValidationDetails:
    """Per-run facts collected by the pipeline."""

    title_valid: bool = False
    file_count_valid: bool = False
    file_path_valid: bool = False
    json_valid: bool = False
    action_type: str | None = None
    domain_name: str | None = None
    sld: str | None = None
    file_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "titleValid": self.title_valid,
            "fileCountValid": self.file_count_valid,
            "filePathValid": self.file_path_valid,
            "jsonValid": self.json_valid,
            "actionType": self.action_type,
            "domainName": self.domain_name,
            "sld": self.sld,
            "fileName": self.file_name,
        }


@dataclass
class ValidationResult:
    """Result of one validation run."""

    issues: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    details: ValidationDetails = field(default_factory=ValidationDetails)
    report: str = ""

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]

    @property
    def categories(self) -> set[ErrorCategory]:
        return {issue.category for issue in self.issues}

    def add_error(self, category: ErrorCategory, message: str) -> None:
        if not message:
            raise ValueError("Validation error message must not be empty")
        self.issues.append(ValidationIssue(category=category, message=message))

    def add_warning(self, message: str) -> None:
        if message and message not in self.warnings:
            self.warnings.append(message)

    def to_dict(self) -> dict[str, Any]:
        """Flat JSON-ready form used for the validation-result.json artifact."""
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
            "warnings": list(self.warnings),
            "issues": [issue.to_dict() for issue in self.issues],
            "details": self.details.to_dict(),
            "report": self.report,
        }


@dataclass(frozen=True)
class ReportOutcome:
    """What the reporter produced for a validation run."""

    text: str
    label: str
    artifact_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
