"""Agreements validator."""

import json
from typing import Any

from suffixbot.config import REQUIRED_AGREEMENTS
from suffixbot.types.validation import FieldResult


def validate_agreements(agreements: Any) -> FieldResult:
    """Every required agreement key must be present, with no extras, and be boolean ``true``."""
    if not isinstance(agreements, dict):
        return FieldResult.fail("agree_to_agreements field is required and must be an object")

    missing = [name for name in REQUIRED_AGREEMENTS if name not in agreements]
    if missing:
        return FieldResult.fail(
            f"agree_to_agreements is missing required fields: {', '.join(missing)}"
        )

    extra = [name for name in agreements if name not in REQUIRED_AGREEMENTS]
    if extra:
        return FieldResult.fail(
            f"agree_to_agreements contains unexpected fields: {', '.join(extra)}"
        )

    for name in REQUIRED_AGREEMENTS:
        value = agreements[name]
        if not isinstance(value, bool):
            return FieldResult.fail(
                f"agree_to_agreements.{name} must be a boolean. Current value: {json.dumps(value)}"
            )
        if value is not True:
            return FieldResult.fail(
                f"agree_to_agreements.{name} must be true. Current value: false"
            )

    return FieldResult.ok()
