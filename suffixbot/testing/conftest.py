"""
Pytest plugin for suffixbot testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
discovered by pytest. To use them, add this to your conftest.py:

    pytest_plugins = ["suffixbot.testing.conftest"]
"""

from suffixbot.testing.fixtures import (
    mock_dns,
    mock_github,
    reserved_words_source,
    sample_context,
    sample_whois_payload,
    sld_registry,
    suffix_config,
)

__all__ = [
    "mock_github",
    "mock_dns",
    "suffix_config",
    "reserved_words_source",
    "sld_registry",
    "sample_whois_payload",
    "sample_context",
]
