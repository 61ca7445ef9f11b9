"""Shared test helpers for the lnurl-client test suite."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs

import httpx

from lnurl_client import LnurlClient, SignedArtifact
from lnurl_client.errors import NodeRpcError

BASE = "https://lnurl.example.com"
LOCAL_PUBKEY = "02" + "11" * 32
REMOTE_PUBKEY = "03" + "22" * 32
REMOTE_URI = f"{REMOTE_PUBKEY}@203.0.113.7:9735"


class CapturedRequest:
    """Stores details about one HTTP request that was made."""

    def __init__(self, request: httpx.Request) -> None:
        self.method = request.method
        self.url = request.url
        self.headers = request.headers
        self.content = request.content

    @property
    def path(self) -> str:
        return self.url.raw_path.decode().split("?")[0]

    @property
    def query(self) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(self.url.query.decode()).items()}

    @property
    def form(self) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(self.content.decode()).items()}

    @property
    def fields(self) -> dict[str, str]:
        return self.form if self.method == "POST" else self.query


def create_client(
    routes: dict[str, Any],
    *,
    callback_method: str = "post",
) -> tuple[LnurlClient, list[CapturedRequest]]:
    """Create an LnurlClient backed by a mock transport.

    *routes* maps a request path to a JSON body, a ``(status, body)`` tuple,
    raw ``bytes``, a ``(status, body, headers)`` tuple, or an exception to raise.
    """
    captured: list[CapturedRequest] = []

    def handler(request: httpx.Request) -> httpx.Response:
        cap = CapturedRequest(request)
        captured.append(cap)
        route = routes.get(cap.path, (404, {"status": "ERROR", "reason": "no route"}))
        if isinstance(route, Exception):
            raise route
        status, body, *extra = route if isinstance(route, tuple) else (200, route)
        content = body if isinstance(body, bytes) else json.dumps(body).encode()
        headers = {"content-type": "application/json", **(extra[0] if extra else {})}
        return httpx.Response(status, content=content, headers=headers)

    transport = httpx.MockTransport(handler)
    client = httpx.Client(transport=transport)
    return LnurlClient(callback_method=callback_method, http_client=client), captured


class StubNode:
    """Node double that returns scripted artifacts and records every call."""

    def __init__(
        self,
        *,
        pubkey: str = LOCAL_PUBKEY,
        invoice: str = "lnbc100n1pstub",
        signature: str = "d9stubzbasesignature",
        fail: dict[str, NodeRpcError] | None = None,
    ) -> None:
        self.pubkey = pubkey
        self.invoice = invoice
        self.signature = signature
        self.fail = fail or {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name: str) -> bool:
        return any(c[0] == name for c in self.calls)

    def get_pubkey(self) -> str:
        self._record("get_pubkey")
        return self.pubkey

    def create_invoice(self, amount_msat: int, description: str) -> str:
        self._record("create_invoice", amount_msat, description)
        return self.invoice

    def sign_message(self, message: bytes) -> SignedArtifact:
        self._record("sign_message", message)
        return SignedArtifact(signature=self.signature, pubkey=self.pubkey)

    def connect_peer(self, node_uri: str) -> None:
        self._record("connect_peer", node_uri)

    def fund_channel(self, peer_pubkey: str, amount_sat: int, *, announce: bool = True) -> None:
        self._record("fund_channel", peer_pubkey, amount_sat, announce)


class FakeRpc:
    """Stands in for LightningRpc; records calls and replays scripted results."""

    def __init__(self, errors: dict[str, Exception] | None = None) -> None:
        self.errors = errors or {}
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _call(self, method: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((method, args, kwargs))
        if method in self.errors:
            raise self.errors[method]

    def getinfo(self):
        self._call("getinfo")
        return {"id": LOCAL_PUBKEY, "alias": "test"}

    def invoice(self, amount_msat, label, description):
        self._call("invoice", amount_msat, label, description)
        return {"bolt11": "lnbcrt100n1pfake", "payment_hash": "00" * 32}

    def signmessage(self, message):
        self._call("signmessage", message)
        return {"signature": "aa" * 64, "recid": "00", "zbase": "d9zbase"}

    def connect(self, peer_id, host=None, port=None):
        self._call("connect", peer_id, host, port)
        return {"id": peer_id, "features": "", "direction": "out", "address": {}}

    def fundchannel(self, node_id, amount, announce=True):
        self._call("fundchannel", node_id, amount, announce=announce)
        return {"txid": "ff" * 32, "channel_id": "ee" * 32}
