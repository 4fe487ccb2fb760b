"""Nameservers validator."""

from typing import Any

from suffixbot.config import MAX_NAMESERVERS, MIN_NAMESERVERS, NAMESERVER_PATTERN
from suffixbot.types.validation import FieldResult


def validate_nameservers(nameservers: Any) -> FieldResult:
    """
    Validate the ``nameservers`` field.

    Requires a list of 2-6 unique hostnames. Duplicate detection is an exact
    (case-sensitive) string comparison; each hostname must have 2-4 labels
    and no trailing dot.
    """
    if not isinstance(nameservers, list):
        return FieldResult.fail("nameservers field is required and must be an array")

    count = len(nameservers)
    if count < MIN_NAMESERVERS:
        return FieldResult.fail(
            f"nameservers must have at least {MIN_NAMESERVERS} entries, currently has {count}"
        )
    if count > MAX_NAMESERVERS:
        return FieldResult.fail(
            f"nameservers allows maximum {MAX_NAMESERVERS} entries, currently has {count}"
        )

    for index, ns in enumerate(nameservers):
        if not ns or not isinstance(ns, str):
            return FieldResult.fail(f"nameservers[{index}] must be a string")

    if len(set(nameservers)) != count:
        return FieldResult.fail("nameservers contains duplicate entries")

    for index, ns in enumerate(nameservers):
        if ns.endswith("."):
            return FieldResult.fail(
                f'nameservers[{index}] cannot end with a dot. Current value: "{ns}"'
            )

        if not NAMESERVER_PATTERN.match(ns):
            return FieldResult.fail(
                f'nameservers[{index}] is not a valid domain format. Current value: "{ns}"'
            )

        if "." not in ns:
            return FieldResult.fail(
                f"nameservers[{index}] must be a complete domain name (containing dots). "
                f'Current value: "{ns}"'
            )

        labels = ns.split(".")
        if not 2 <= len(labels) <= 4:
            return FieldResult.fail(
                f'nameservers[{index}] must be a valid domain with 2-4 levels. Current value: "{ns}"'
            )

    return FieldResult.ok()
