"""suffixbot API clients."""

from suffixbot.clients.github import AsyncGitHubClient
from suffixbot.clients.powerdns import AsyncPowerDNSAdminClient

__all__ = [
    "AsyncGitHubClient",
    "AsyncPowerDNSAdminClient",
]
