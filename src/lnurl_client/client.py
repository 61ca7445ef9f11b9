from __future__ import annotations

import json
import logging
from importlib.metadata import version as _pkg_version
from typing import Any

import httpx

from .config import DEFAULT_HTTP_TIMEOUT
from .errors import DecodeError, ProtocolError, TransportError, _extract_reason
from .types import CallbackMethod

log = logging.getLogger(__name__)

UNKNOWN_REASON = "Unknown error"

try:
    _VERSION = _pkg_version("lnurl-client")
except Exception:
    _VERSION = "0.0.0"

_USER_AGENT = f"lnurl-client-python/{_VERSION}"


def _headers() -> dict[str, str]:
    return {"Accept": "application/json", "User-Agent": _USER_AGENT}


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    body = response.text
    reason = _extract_reason(body, UNKNOWN_REASON)
    if reason is not None:
        raise ProtocolError(reason)
    raise TransportError(
        f"HTTP {response.status_code} {response.reason_phrase or 'Error'} from {response.request.url}",
        status=response.status_code,
        body=body,
    )


def check_status(data: Any) -> Any:
    """Raise ProtocolError if *data* is an LNURL ``ERROR`` object, else return it."""
    if isinstance(data, dict) and str(data.get("status", "")).upper() == "ERROR":
        raise ProtocolError(data.get("reason") or UNKNOWN_REASON)
    return data


def expect_ok(data: Any) -> dict[str, Any]:
    """Require an ``{"status": "OK"}`` callback reply."""
    check_status(data)
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object from callback, got {type(data).__name__}")
    status = data.get("status")
    if not isinstance(status, str) or status.upper() != "OK":
        raise ProtocolError(data.get("reason") or f"unexpected callback status: {status!r}")
    return data


class LnurlClient:
    """Synchronous HTTP client for LNURL endpoints.

    Every step is attempted exactly once; nothing is retried.

    >>> with LnurlClient() as http:
    ...     params = http.get_json("https://example.com/request-withdraw")
    """

    def __init__(
        self,
        *,
        timeout: float | httpx.Timeout = DEFAULT_HTTP_TIMEOUT,
        callback_method: CallbackMethod = "post",
        http_client: httpx.Client | None = None,
    ) -> None:
        self._http = http_client or httpx.Client(timeout=timeout, follow_redirects=True)
        self.callback_method = callback_method

    def get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        """GET *url* and return its decoded JSON body."""
        return self._send("GET", url, params=params)

    def post_form(self, url: str, fields: dict[str, Any]) -> Any:
        """POST *fields* form-encoded to *url* and return its decoded JSON body."""
        return self._send("POST", url, data=fields)

    def callback(self, url: str, fields: dict[str, Any]) -> Any:
        """Deliver a flow's callback fields the way this client is configured to."""
        if self.callback_method == "get":
            return self.get_json(url, params=fields)
        return self.post_form(url, fields)

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        log.debug("%s %s", method, url)
        try:
            resp = self._http.request(method, url, headers=_headers(), follow_redirects=True, **kwargs)
        except httpx.InvalidURL as e:
            raise DecodeError(f"invalid URL {url!r}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        _raise_for_status(resp)
        try:
            data = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"{method} {url} returned a non-JSON body: {resp.text[:200]!r}") from e
        return check_status(data)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self) -> LnurlClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
