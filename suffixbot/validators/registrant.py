"""Registrant (contact email) validator."""

from typing import Any

from suffixbot.config import EMAIL_PATTERN, MAX_EMAIL_LENGTH, MAX_EMAIL_LOCAL_PART
from suffixbot.types.validation import FieldResult


def validate_registrant(registrant: Any) -> FieldResult:
    """Validate the ``registrant`` field as a conservative RFC 5322 address."""
    if not registrant or not isinstance(registrant, str):
        return FieldResult.fail("registrant field is required and must be a string")

    if registrant.count("@") != 1:
        return FieldResult.fail(
            f'registrant email must contain exactly one @ symbol. Current value: "{registrant}"'
        )

    if not EMAIL_PATTERN.match(registrant):
        return FieldResult.fail(
            f'registrant must be a valid email address. Current value: "{registrant}"'
        )

    local_part, domain = registrant.split("@")
    if "." not in domain:
        return FieldResult.fail(
            f'registrant email domain must contain at least one dot. Current value: "{registrant}"'
        )

    if len(registrant) > MAX_EMAIL_LENGTH:
        return FieldResult.fail(
            f"registrant email is too long (max {MAX_EMAIL_LENGTH} characters). "
            f"Current length: {len(registrant)}"
        )

    if len(local_part) > MAX_EMAIL_LOCAL_PART:
        return FieldResult.fail(
            f"registrant email local part is too long (max {MAX_EMAIL_LOCAL_PART} characters). "
            f"Current length: {len(local_part)}"
        )

    return FieldResult.ok()
