"""suffixbot type definitions.

This module exports all data model types used by the package.
"""

from suffixbot.types.dns import (
    OPERATION_ALIASES,
    DNSOperation,
    DNSSyncResult,
    SyncState,
    SyncTarget,
)
from suffixbot.types.pulls import FileChange, FileStatus, PullRequestContext
from suffixbot.types.registry import SLDEntry, SLDOperator
from suffixbot.types.validation import (
    ErrorCategory,
    FieldResult,
    ParsedTitle,
    ReportOutcome,
    ValidationDetails,
    ValidationIssue,
    ValidationResult,
)
from suffixbot.types.whois import Agreements, WhoisRecord

__all__ = [
    # Pull request types
    "FileChange",
    "FileStatus",
    "PullRequestContext",
    # WHOIS types
    "Agreements",
    "WhoisRecord",
    # Registry types
    "SLDEntry",
    "SLDOperator",
    # Validation types
    "ErrorCategory",
    "FieldResult",
    "ParsedTitle",
    "ReportOutcome",
    "ValidationDetails",
    "ValidationIssue",
    "ValidationResult",
    # DNS sync types
    "DNSOperation",
    "DNSSyncResult",
    "OPERATION_ALIASES",
    "SyncState",
    "SyncTarget",
]
