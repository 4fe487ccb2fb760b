"""suffixbot - whois pull request validation and DNS sync for public free suffixes."""

from suffixbot.clients import AsyncGitHubClient, AsyncPowerDNSAdminClient
from suffixbot.config import Config
from suffixbot.dns_sync import DNSSyncEngine
from suffixbot.engine import Check, ValidationEngine, build_pipeline
from suffixbot.exceptions import (
    APIError,
    APIValidationError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    ContextError,
    DNSSyncError,
    NotFoundError,
    RateLimitedError,
    RegistryFormatError,
    RegistryUnavailableError,
    ServerError,
    SuffixBotError,
)
from suffixbot.logging import configure_logging, get_logger
from suffixbot.report import ResultReporter
from suffixbot.reserved_words import ReservedWordsSource
from suffixbot.sld_registry import SLDRegistry
from suffixbot.transport import AsyncHTTPTransport, RetryConfig

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Validation
    "Config",
    "ValidationEngine",
    "Check",
    "build_pipeline",
    "ResultReporter",
    # Data sources
    "ReservedWordsSource",
    "SLDRegistry",
    # DNS
    "DNSSyncEngine",
    # Clients
    "AsyncGitHubClient",
    "AsyncPowerDNSAdminClient",
    # Exceptions
    "SuffixBotError",
    "ConfigurationError",
    "ContextError",
    "RegistryUnavailableError",
    "RegistryFormatError",
    "DNSSyncError",
    "APIError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "APIValidationError",
    "ServerError",
    # Transport
    "AsyncHTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
