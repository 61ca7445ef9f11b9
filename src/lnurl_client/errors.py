from __future__ import annotations

import json


class LnurlError(Exception):
    """Base exception for every failure a flow can end with."""

    kind = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        # Last flow state reached before the failure, set by the flow runner.
        self.state: str | None = None
        # BOLT11 invoice that was created but never redeemed, if any.
        self.invoice: str | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, state={self.state!r})"


class InvalidAddressError(LnurlError):
    """Raised when an address is neither an http(s) URL nor ``host:port``."""

    kind = "InvalidAddress"

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid URL or host:port address: {address!r}")
        self.address = address


class TransportError(LnurlError):
    """Raised for network failures and non-2xx HTTP replies."""

    kind = "Transport"

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class DecodeError(LnurlError):
    """Raised when a reply is not JSON or lacks the fields a flow needs."""

    kind = "Decode"


class ProtocolError(LnurlError):
    """Raised when the server answers with ``status: ERROR`` or a non-OK status."""

    kind = "Protocol"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ValidationError(LnurlError):
    """Raised when a client-side precondition fails before any node call."""

    kind = "Validation"


class NodeRpcError(LnurlError):
    """Raised when the Lightning node rejects an RPC call.

    *code* and *message* are the node's own, never reinterpreted.
    """

    kind = "NodeRpc"

    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"{method} failed: {message}" if code is None else f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.message = message


def _extract_reason(body: str, fallback: str) -> str | None:
    """Return the LNURL error reason carried by *body*, or None if it is not an ERROR object."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return None
    if isinstance(data, dict) and str(data.get("status", "")).upper() == "ERROR":
        return data.get("reason") or fallback
    return None
