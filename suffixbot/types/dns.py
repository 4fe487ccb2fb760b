"""DNS synchronization data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SyncState(str, Enum):
    """States of a DNS sync run."""

    PARSE_TITLE = "parse_title"
    VALIDATE_RECORD = "validate_record"
    CHECK_ZONE = "check_zone"
    APPLY = "apply"
    DONE = "done"
    FAILED = "failed"


class DNSOperation(str, Enum):
    """What to do with the NS RRset of ``domain.sld.``."""

    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def is_delete(self) -> bool:
        return self is DNSOperation.DELETE


# Title action types and manual-trigger aliases
OPERATION_ALIASES: dict[str, DNSOperation] = {
    "registration": DNSOperation.ADD,
    "add": DNSOperation.ADD,
    "create": DNSOperation.ADD,
    "update": DNSOperation.UPDATE,
    "remove": DNSOperation.DELETE,
    "delete": DNSOperation.DELETE,
}


@dataclass(frozen=True)
class SyncTarget:
    """Domain and NS data a sync run applies."""

    domain: str
    sld: str
    nameservers: tuple[str, ...] = ()

    @property
    def fqdn(self) -> str:
        return f"{self.domain}.{self.sld}"


@dataclass
class DNSSyncResult:
    """Outcome written to dns-sync-result.json."""

    success: bool
    operation: str | None = None
    domain: str | None = None
    message: str | None = None
    error: str | None = None
    nameservers: list[str] | None = None
    trigger_type: str = "pr_merge"
    triggered_by: str | None = None
    manual_options: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "operation": self.operation,
            "domain": self.domain,
            "timestamp": self.timestamp.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "triggerType": self.trigger_type,
        }
        if self.message is not None:
            data["message"] = self.message
        if self.error is not None:
            data["error"] = self.error
        if self.nameservers is not None:
            data["nameservers"] = list(self.nameservers)
        if self.triggered_by is not None:
            data["triggeredBy"] = self.triggered_by
        if self.manual_options is not None:
            data["manualOptions"] = dict(self.manual_options)
        return data
