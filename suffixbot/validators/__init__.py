"""Stateless WHOIS field validators.

Each validator takes the raw (untrusted) JSON value and returns a
``FieldResult``; none of them raise.
"""

from suffixbot.validators.agreements import validate_agreements
from suffixbot.validators.domain import validate_domain_label
from suffixbot.validators.nameservers import validate_nameservers
from suffixbot.validators.registrant import validate_registrant

__all__ = [
    "validate_agreements",
    "validate_domain_label",
    "validate_nameservers",
    "validate_registrant",
]
