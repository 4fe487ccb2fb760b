"""
Static policy and runtime configuration for suffixbot.

Patterns and thresholds are module constants; everything that varies per
deployment (repository, credentials, file locations) lives on ``Config``.
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from suffixbot.exceptions import ConfigurationError

TITLE_PATTERN = re.compile(r"^(Registration|Update|Remove):\s+([A-Za-z0-9-]+)\.(.+)\Z")
FILE_PATH_PATTERN = re.compile(r"^whois/[^/]+\.json\Z")
WHOIS_FILENAME_PATTERN = re.compile(r"^whois/([^/]+)\.json\Z")
RESERVED_WORD_PATTERN = re.compile(r"^[A-Za-z0-9-]+\Z")
DOMAIN_LABEL_PATTERN = re.compile(r"^[A-Za-z0-9-]+\Z|^xn--[A-Za-z0-9-]+\Z")
NAMESERVER_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.-]*[A-Za-z0-9]\Z")
EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*\Z"
)

# Closed schema of a whois/<domain>.<sld>.json file, in canonical order
WHOIS_FIELDS = ("registrant", "domain", "sld", "nameservers", "agree_to_agreements")
REQUIRED_AGREEMENTS = (
    "registration_and_use_agreement",
    "acceptable_use_policy",
    "privacy_policy",
)

SLD_STATUS_LIVE = "live"

LABEL_VALIDATION_PASSED = "validation-passed"
LABEL_VALIDATION_FAILED = "validation-failed"

MIN_DOMAIN_LENGTH = 3
MIN_NAMESERVERS = 2
MAX_NAMESERVERS = 6
MAX_EMAIL_LENGTH = 254
MAX_EMAIL_LOCAL_PART = 64

# Used only on a cold start when the reserved-word list cannot be read
DEFAULT_FALLBACK_RESERVED_WORDS = (
    "abuse",
    "admin",
    "administrator",
    "api",
    "dns",
    "example",
    "ftp",
    "hostmaster",
    "imap",
    "localhost",
    "mail",
    "ns",
    "ns1",
    "ns2",
    "pop",
    "postmaster",
    "registry",
    "root",
    "security",
    "smtp",
    "support",
    "test",
    "webmaster",
    "whois",
    "www",
)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def env_flag(value: str | None) -> bool:
    """Interpret an environment variable as a boolean flag."""
    return value is not None and value.strip().lower() in _TRUE_VALUES


@dataclass
class Config:
    """Deployment configuration shared by the validation and DNS sync entry points."""

    repository: str = "PublicFreeSuffix/PublicFreeSuffix"
    base_branch: str = "main"
    github_api_url: str = "https://api.github.com"
    github_token: str | None = None
    template_url: str = (
        "https://raw.githubusercontent.com/PublicFreeSuffix/PublicFreeSuffix/refs/heads/main"
        "/.github/PULL_REQUEST_TEMPLATE/WHOIS_FILE_OPERATION.md"
    )
    readme_url: str = "https://github.com/PublicFreeSuffix/PublicFreeSuffix/blob/main/README.md"
    authorization_url: str = (
        "https://github.com/PublicFreeSuffix/PublicFreeSuffix/blob/main/AUTHORIZATION.md"
    )
    label_passed: str = LABEL_VALIDATION_PASSED
    label_failed: str = LABEL_VALIDATION_FAILED

    max_file_count: int = 1
    min_checked_items: int = 11
    min_confirmation_items: int = 9
    cache_ttl: timedelta = field(default_factory=lambda: timedelta(hours=24))

    workspace: Path = field(default_factory=Path.cwd)
    reserved_words_file: str = "reserved_words.txt"
    sld_list_file: str = "public_sld_list.json"
    cache_dir: Path | None = None
    reserved_words_cache_file: str = "reserved_words_cache.json"
    sld_cache_file: str = "sld_cache.json"
    fallback_reserved_words: tuple[str, ...] = DEFAULT_FALLBACK_RESERVED_WORDS

    validation_result_file: str = "validation-result.json"
    dns_sync_result_file: str = "dns-sync-result.json"

    pda_api_url: str | None = None
    pda_api_key: str | None = None
    dns_record_ttl: int = 7200
    http_timeout: float = 30.0

    log_level: str = "info"

    def __post_init__(self) -> None:
        if "/" not in self.repository:
            raise ConfigurationError(
                f"Invalid repository '{self.repository}'. Expected 'owner/name'"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        """
        Create a configuration from environment variables.

        Environment variables:
            GITHUB_REPOSITORY: owner/name of the governed repository
            GITHUB_TOKEN / MY_GITHUB_TOKEN: token for the GitHub REST API
            GITHUB_API_URL: GitHub REST API base URL
            GITHUB_WORKSPACE: checkout root holding the whois/ tree and data files
            SUFFIXBOT_CACHE_DIR: directory for the persisted source caches
            PDA_API_URL / PDA_API_KEY: PowerDNS-Admin API endpoint and key
            LOG_LEVEL: debug, info, warning or error

        Raises:
            ConfigurationError: If a value is malformed
        """
        env = os.environ if environ is None else environ
        defaults = cls.__dataclass_fields__

        workspace = env.get("GITHUB_WORKSPACE")
        cache_dir = env.get("SUFFIXBOT_CACHE_DIR")

        return cls(
            repository=env.get("GITHUB_REPOSITORY") or defaults["repository"].default,
            github_api_url=env.get("GITHUB_API_URL") or defaults["github_api_url"].default,
            github_token=env.get("GITHUB_TOKEN") or env.get("MY_GITHUB_TOKEN"),
            workspace=Path(workspace) if workspace else Path.cwd(),
            cache_dir=Path(cache_dir) if cache_dir else None,
            pda_api_url=env.get("PDA_API_URL"),
            pda_api_key=env.get("PDA_API_KEY"),
            log_level=env.get("LOG_LEVEL") or defaults["log_level"].default,
        )

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[1]

    @property
    def reserved_words_path(self) -> Path:
        return self.workspace / self.reserved_words_file

    @property
    def sld_list_path(self) -> Path:
        return self.workspace / self.sld_list_file

    @property
    def reserved_words_cache_path(self) -> Path:
        return (self.cache_dir or self.workspace) / self.reserved_words_cache_file

    @property
    def sld_cache_path(self) -> Path:
        return (self.cache_dir or self.workspace) / self.sld_cache_file
