"""SLD registry data models."""

from dataclasses import asdict, dataclass
from typing import Any

from suffixbot.config import SLD_STATUS_LIVE


@dataclass(frozen=True)
class SLDOperator:
    """Organization operating a second-level-domain suffix."""

    organization: str
    website: str
    created_at: str
    description: str


@dataclass(frozen=True)
class SLDEntry:
    """Registry entry for one suffix (e.g. ``no.kg``)."""

    status: str  # "live", "reserved", "suspended", ...
    operator: SLDOperator

    @property
    def is_live(self) -> bool:
        return self.status == SLD_STATUS_LIVE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
