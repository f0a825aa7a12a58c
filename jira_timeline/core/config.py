"""Central configuration, constants, and client connection settings."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError

# =============================================================================
# Jira Connection Settings
# =============================================================================
INSTALLATION_CLOUD = "Cloud"
INSTALLATION_LOCAL = "Local"
INSTALLATION_TYPES: frozenset[str] = frozenset({INSTALLATION_CLOUD, INSTALLATION_LOCAL})

AUTH_BASIC = "basic"
AUTH_BEARER = "bearer"
AUTH_MTLS = "mtls"
AUTH_TYPES: frozenset[str] = frozenset({AUTH_BASIC, AUTH_BEARER, AUTH_MTLS})

DEFAULT_TIMEOUT: float = 15.0  # seconds, per request
TIMEZONE = "UTC"  # reference clock for "now" in history and durations

# REST API versions per dialect
API_VERSION_CLOUD = "3"
API_VERSION_LOCAL = "2"

# =============================================================================
# Search / JQL
# =============================================================================
# The cloud /search/jql endpoint rejects queries without one of these
# restrictions. Matching is a case-insensitive substring test, not a parse.
BOUNDING_TERMS: Sequence[str] = (
    "created >=",
    "created >",
    "created =",
    "created <=",
    "created <",
    "updated >=",
    "updated >",
    "updated =",
    "updated <=",
    "updated <",
    "project =",
    "project in",
    "id =",
    "id in",
    "key =",
    "key in",
    "issuekey =",
    "issuekey in",
)
DEFAULT_BOUND = "created >= -90d"

DEFAULT_PAGE_SIZE: int = 50  # single search call
DEFAULT_BATCH_SIZE: int = 100  # auto-paging helpers
DEFAULT_ORDER_BY = "created DESC"
DEFAULT_RECENT_DAYS: int = 30
SEARCH_ALL_FIELDS = "*all"

# =============================================================================
# Changelog
# =============================================================================
STATUS_FIELD = "status"

# Primary format first (RFC 3339 without fraction), then Jira's usual
# millisecond precision with a numeric offset (2024-01-05T10:00:00.000+0000).
TIMESTAMP_FORMATS: Sequence[str] = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
)

# =============================================================================
# Batch processing
# =============================================================================
BATCH_MAX_WORKERS = 8  # upper bound when callers opt into threads
BATCH_PROGRESS_EVERY = 10


@dataclass(slots=True)
class ClientSettings:
    """Connection settings for a single Jira installation."""

    server: str
    login: str | None = None
    api_token: str | None = None
    auth_type: str = AUTH_BASIC
    installation_type: str = INSTALLATION_CLOUD
    timeout: float = DEFAULT_TIMEOUT
    insecure: bool = False
    ca_cert: str | None = None
    client_cert: str | None = None
    client_key: str | None = None

    def validate(self) -> ClientSettings:
        if not self.server:
            raise ConfigurationError("server URL is required")
        if self.auth_type not in AUTH_TYPES:
            raise ConfigurationError(f"unsupported auth type: {self.auth_type!r}")
        if self.installation_type not in INSTALLATION_TYPES:
            raise ConfigurationError(f"unsupported installation type: {self.installation_type!r}")
        if self.auth_type == AUTH_MTLS:
            if not (self.client_cert and self.client_key):
                raise ConfigurationError("mTLS requires client_cert and client_key")
        else:
            if not self.api_token:
                raise ConfigurationError("API token is required")
            if self.auth_type == AUTH_BASIC and not self.login:
                raise ConfigurationError("login is required for basic auth")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        return self

    @property
    def api_version(self) -> str:
        if self.installation_type == INSTALLATION_LOCAL:
            return API_VERSION_LOCAL
        return API_VERSION_CLOUD

    @classmethod
    def from_env(cls, env_file: str | None = None) -> ClientSettings:
        """Build settings from ``JIRA_*`` environment variables.

        Values from ``env_file`` (or a ``.env`` in the working directory) are
        loaded first without overriding variables already set in the process.
        """
        load_dotenv(env_file, override=False)
        timeout_raw = os.getenv("JIRA_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ConfigurationError(f"invalid JIRA_TIMEOUT: {timeout_raw!r}") from exc
        settings = cls(
            server=os.getenv("JIRA_SERVER", ""),
            login=os.getenv("JIRA_EMAIL") or os.getenv("JIRA_LOGIN"),
            api_token=os.getenv("JIRA_API_TOKEN") or os.getenv("JIRA_TOKEN"),
            auth_type=os.getenv("JIRA_AUTH_TYPE", AUTH_BASIC).lower(),
            installation_type=os.getenv("JIRA_INSTALLATION_TYPE", INSTALLATION_CLOUD).capitalize(),
            timeout=timeout,
            insecure=os.getenv("JIRA_INSECURE", "").lower() in {"1", "true", "yes"},
            ca_cert=os.getenv("JIRA_CA_CERT") or None,
            client_cert=os.getenv("JIRA_CLIENT_CERT") or None,
            client_key=os.getenv("JIRA_CLIENT_KEY") or None,
        )
        return settings.validate()
