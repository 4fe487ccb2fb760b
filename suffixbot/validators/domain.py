"""Domain label format validator (reserved words are checked by the pipeline)."""

from typing import Any

from suffixbot.config import DOMAIN_LABEL_PATTERN, MIN_DOMAIN_LENGTH
from suffixbot.types.validation import FieldResult


def validate_domain_label(domain: Any) -> FieldResult:
    if not domain or not isinstance(domain, str):
        return FieldResult.fail("domain field is required and must be a string")

    if len(domain) < MIN_DOMAIN_LENGTH:
        return FieldResult.fail(
            f"domain must be at least {MIN_DOMAIN_LENGTH} characters. Current length: {len(domain)}"
        )

    if not DOMAIN_LABEL_PATTERN.match(domain):
        return FieldResult.fail(
            "domain must be alphanumeric with hyphens or xn-- format punycode. "
            f'Current value: "{domain}"'
        )

    if domain.startswith("-") or domain.endswith("-"):
        return FieldResult.fail(f'domain cannot start or end with a hyphen. Current value: "{domain}"')

    return FieldResult.ok()
