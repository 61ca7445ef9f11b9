"""Access to the local Lightning node.

Flows only ever see the :class:`Node` protocol. :class:`ClnNode` implements it
over Core Lightning's JSON-RPC control socket; tests substitute a stub.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from pyln.client import LightningRpc, RpcError

from .config import Settings
from .endpoint import parse_node_uri
from .errors import NodeRpcError
from .types import SignedArtifact

log = logging.getLogger(__name__)

T = TypeVar("T")

INVOICE_LABEL_PREFIX = "lnurl-withdraw-"


class Node(Protocol):
    """What the LNURL flows need from a Lightning node."""

    def get_pubkey(self) -> str: ...

    def create_invoice(self, amount_msat: int, description: str) -> str: ...

    def sign_message(self, message: bytes) -> SignedArtifact: ...

    def connect_peer(self, node_uri: str) -> None: ...

    def fund_channel(self, peer_pubkey: str, amount_sat: int, *, announce: bool = True) -> None: ...


class ClnNode:
    """Core Lightning node reached through its unix control socket.

    >>> node = ClnNode(Settings.from_env())
    >>> node.get_pubkey()
    '02...'
    """

    def __init__(self, settings: Settings, *, rpc: LightningRpc | None = None) -> None:
        self._rpc = rpc or LightningRpc(settings.rpc_path, logger=log)

    def get_pubkey(self) -> str:
        info = self._call("getinfo", self._rpc.getinfo)
        return info["id"]

    def create_invoice(self, amount_msat: int, description: str) -> str:
        """Create a BOLT11 invoice for exactly *amount_msat*."""
        label = f"{INVOICE_LABEL_PREFIX}{int(time.time() * 1000)}"
        result = self._call("invoice", self._rpc.invoice, amount_msat, label, description)
        log.info("Invoice %s created for %d msat", label, amount_msat)
        return result["bolt11"]

    def sign_message(self, message: bytes) -> SignedArtifact:
        """Sign *message* with the node key; the signature is the node's zbase text.

        ``signmessage`` takes text, so the bytes are handed over hex-encoded.
        """
        result = self._call("signmessage", self._rpc.signmessage, message.hex())
        return SignedArtifact(signature=result["zbase"], pubkey=self.get_pubkey())

    def connect_peer(self, node_uri: str) -> None:
        """Connect to ``pubkey@host:port``; an existing connection counts as success."""
        uri = parse_node_uri(node_uri)
        log.info("Connecting to node %s", uri)
        self._call("connect", self._rpc.connect, uri.pubkey, uri.host, uri.port)

    def fund_channel(self, peer_pubkey: str, amount_sat: int, *, announce: bool = True) -> None:
        log.info("Funding %s channel of %d sat with %s", "public" if announce else "private", amount_sat, peer_pubkey)
        self._call("fundchannel", self._rpc.fundchannel, peer_pubkey, amount_sat, announce=announce)

    @staticmethod
    def _call(method: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except RpcError as e:
            code, message = _split_rpc_error(e.error)
            raise NodeRpcError(method, code, message) from e
        except OSError as e:
            raise NodeRpcError(method, None, f"cannot reach node RPC socket: {e}") from e


def _split_rpc_error(error: Any) -> tuple[int | None, str]:
    if isinstance(error, dict):
        return error.get("code"), str(error.get("message", error))
    return None, str(error)
