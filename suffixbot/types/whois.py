"""WHOIS record data models.

A ``WhoisRecord`` is only constructed from content that already passed the
closed-schema and per-field checks.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Agreements:
    registration_and_use_agreement: bool
    acceptable_use_policy: bool
    privacy_policy: bool


@dataclass(frozen=True)
class WhoisRecord:
    """Validated content of ``whois/<domain>.<sld>.json``."""

    registrant: str
    domain: str
    sld: str
    nameservers: tuple[str, ...]
    agree_to_agreements: Agreements

    @property
    def full_domain(self) -> str:
        return f"{self.domain}.{self.sld}"

    @classmethod
    def from_validated(cls, data: dict[str, Any]) -> "WhoisRecord":
        return cls(
            registrant=data["registrant"],
            domain=data["domain"],
            sld=data["sld"],
            nameservers=tuple(data["nameservers"]),
            agree_to_agreements=Agreements(**data["agree_to_agreements"]),
        )
