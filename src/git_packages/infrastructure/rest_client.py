"""Thin authenticated GET client over ``httpx.AsyncClient``."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from git_packages.domain.exceptions import DecodeFailure, HttpFailure, TransportFailure

logger = logging.getLogger(__name__)

_USER_AGENT = "git-packages/1.0"


class RestClient:
    """Issue one GET per call and translate failures into domain errors.

    This client never retries and never interprets status codes beyond
    capturing them on :class:`HttpFailure`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._default_headers = {"User-Agent": _USER_AGENT, **(default_headers or {})}

    async def get_json(
        self,
        url: str,
        auth_header: str | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """GET *url* and return the decoded JSON body."""
        resp = await self._get(url, auth_header, params)
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Invalid JSON from %s: %s", url, exc)
            raise DecodeFailure(url, str(exc)) from exc

    async def get_text(
        self,
        url: str,
        auth_header: str | None = None,
        params: dict[str, str] | None = None,
    ) -> str:
        """GET *url* and return the body as text."""
        resp = await self._get(url, auth_header, params)
        try:
            return resp.content.decode(resp.encoding or "utf-8")
        except (LookupError, UnicodeDecodeError) as exc:
            raise DecodeFailure(url, str(exc)) from exc

    async def _get(
        self,
        url: str,
        auth_header: str | None,
        params: dict[str, str] | None,
    ) -> httpx.Response:
        headers = dict(self._default_headers)
        if auth_header:
            headers["Authorization"] = auth_header

        logger.debug("GET %s params=%s auth=%s", url, params, bool(auth_header))
        try:
            resp = await self._client.get(url, headers=headers, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Network error fetching %s: %s", url, exc)
            raise TransportFailure(url, str(exc) or type(exc).__name__) from exc

        if resp.is_success:
            return resp

        logger.warning("%s returned HTTP %d", url, resp.status_code)
        raise HttpFailure(
            url,
            resp.status_code,
            body=resp.text,
            headers=resp.headers,
        )
