"""suffixbot testing utilities.

Provides mock clients and factories for testing the validation pipeline
and DNS sync without network access.
"""

from suffixbot.testing.fixtures import (
    create_mock_context,
    create_mock_file_change,
    create_patch,
    create_pr_body,
    create_sld_registry_payload,
    create_whois_payload,
    write_data_files,
)
from suffixbot.testing.mock import MockCall, MockDNSClient, MockGitHubClient, MockResponse

__all__ = [
    # Mock clients
    "MockGitHubClient",
    "MockDNSClient",
    "MockCall",
    "MockResponse",
    # Factories
    "create_whois_payload",
    "create_patch",
    "create_mock_file_change",
    "create_pr_body",
    "create_mock_context",
    "create_sld_registry_payload",
    "write_data_files",
]
