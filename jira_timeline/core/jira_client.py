"""Jira API client wrapper: authenticated GET + JSON decoding over REST v2/v3."""

from __future__ import annotations

import json
import logging
from threading import Event
from typing import Any

from jira import JIRA, JIRAError

from .config import (
    API_VERSION_CLOUD,
    AUTH_BEARER,
    AUTH_MTLS,
    DEFAULT_TIMEOUT,
    ClientSettings,
)
from .errors import DecodeError, EmptyResponseError, OperationCancelled, UnexpectedStatusError

logger = logging.getLogger(__name__)


class JiraAPI:
    def __init__(
        self,
        server: str,
        email: str | None = None,
        token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: JIRA | None = None,
    ):
        self.server = server.rstrip("/")
        self.client = client or JIRA(
            basic_auth=(email, token),
            options={"server": self.server, "rest_api_version": API_VERSION_CLOUD},
            timeout=timeout,
            get_server_info=False,
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> JiraAPI:
        """Create a client for any supported auth type (basic, bearer, mTLS)."""
        settings.validate()
        server = settings.server.rstrip("/")
        options: dict[str, Any] = {
            "server": server,
            "rest_api_version": settings.api_version,
            "verify": settings.ca_cert or not settings.insecure,
        }
        kwargs: dict[str, Any] = {"timeout": settings.timeout, "get_server_info": False}
        if settings.auth_type == AUTH_BEARER:
            kwargs["token_auth"] = settings.api_token
        elif settings.auth_type == AUTH_MTLS:
            options["client_cert"] = (settings.client_cert, settings.client_key)
        else:
            kwargs["basic_auth"] = (settings.login, settings.api_token)
        return cls(server, client=JIRA(options=options, **kwargs))

    def url(self, path: str, api_version: str = API_VERSION_CLOUD) -> str:
        return f"{self.server}/rest/api/{api_version}/{path.lstrip('/')}"

    def get(self, path: str, *, params: dict[str, Any] | None = None, api_version: str = API_VERSION_CLOUD):
        """Issue one authenticated GET. Transport errors propagate unchanged."""
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        return session.get(self.url(path, api_version), params=params)

    def get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        api_version: str = API_VERSION_CLOUD,
        operation: str = "request",
        cancel: Event | None = None,
    ) -> dict[str, Any]:
        """GET ``path`` and decode its JSON object body.

        Raises
        ------
        OperationCancelled
            ``cancel`` was set before the request went out.
        EmptyResponseError
            No response object or an empty body.
        UnexpectedStatusError
            Non-2xx status; carries the status code and raw body.
        DecodeError
            Body is not a JSON object.
        """
        if cancel is not None and cancel.is_set():
            raise OperationCancelled(f"{operation}: cancelled")
        logger.debug("GET %s (v%s) params=%s", path, api_version, params)
        try:
            resp = self.get(path, params=params, api_version=api_version)
        except JIRAError as exc:
            # The resilient session raises on >= 400 instead of returning
            raise UnexpectedStatusError(operation, exc.status_code, exc.text, exc.url) from exc
        if resp is None:
            raise EmptyResponseError(operation)
        status = getattr(resp, "status_code", None)
        if status is None or not 200 <= status < 300:
            raise UnexpectedStatusError(operation, status, getattr(resp, "text", ""), getattr(resp, "url", None))
        body = resp.text
        if not body or not body.strip():
            raise EmptyResponseError(operation)
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise DecodeError(operation, str(exc)) from exc
        if not isinstance(data, dict):
            raise DecodeError(operation, f"expected JSON object, got {type(data).__name__}")
        return data
