"""The three LNURL flows.

Each flow is a small strategy object plugged into :func:`run_flow`, which owns
the shared fetch -> act -> callback skeleton and the error/state bookkeeping.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol, TypeVar

from .client import LnurlClient, expect_ok
from .endpoint import parse_node_uri
from .errors import LnurlError, ValidationError
from .node import Node
from .types import AuthChallenge, ChannelParams, Endpoint, FlowResult, WithdrawParams, parse

log = logging.getLogger(__name__)

P = TypeVar("P")


class State(str, Enum):
    START = "Start"
    PARAMS_FETCHED = "ParamsFetched"
    CHALLENGE_RECEIVED = "ChallengeReceived"
    VALIDATED = "Validated"
    PEER_CONNECTED = "PeerConnected"
    INVOICE_CREATED = "InvoiceCreated"
    SIGNED = "Signed"
    CALLBACK_SENT = "CallbackSent"
    CHANNEL_FUNDED = "ChannelFunded"
    DONE = "Done"


class Run:
    """Tracks one flow invocation through its declared states."""

    def __init__(self, name: str, states: tuple[State, ...]) -> None:
        self.name = name
        self._states = states
        self.history: list[State] = [State.START]
        self.details: dict[str, Any] = {}

    @property
    def state(self) -> State:
        return self.history[-1]

    def advance(self, state: State) -> None:
        current = self._states.index(self.state)
        if state not in self._states[current + 1:]:
            raise RuntimeError(f"{self.name}: illegal transition {self.state.value} -> {state.value}")
        log.debug("%s: %s -> %s", self.name, self.state.value, state.value)
        self.history.append(state)

    def result(self) -> FlowResult:
        return FlowResult(flow=self.name, states=tuple(s.value for s in self.history), details=dict(self.details))


class Flow(Protocol[P]):
    name: str
    path: str
    params_type: type[P]
    fetched: State
    states: tuple[State, ...]

    def act(self, run: Run, params: P, endpoint: Endpoint, node: Node) -> tuple[str, dict[str, Any]]:
        """Do the node-side work; return the callback URL and its fields."""
        ...

    def finish(self, run: Run, params: P, reply: dict[str, Any], node: Node) -> None:
        """Handle the accepted callback reply."""
        ...


def run_flow(flow: Flow[P], endpoint: Endpoint, http: LnurlClient, node: Node) -> FlowResult:
    """Drive *flow* to ``Done`` or raise the first error encountered.

    The raised error's ``state`` is the last state the flow reached.
    """
    run = Run(flow.name, flow.states)
    try:
        url = endpoint.join(flow.path)
        log.info("Requesting %s parameters from %s", flow.name, url)
        params = parse(flow.params_type, http.get_json(url))
        run.advance(flow.fetched)

        callback_url, fields = flow.act(run, params, endpoint, node)

        log.info("Sending %s callback to %s", flow.name, callback_url)
        reply = expect_ok(http.callback(callback_url, fields))
        if State.CALLBACK_SENT in flow.states:
            run.advance(State.CALLBACK_SENT)

        flow.finish(run, params, reply, node)
        run.advance(State.DONE)
    except LnurlError as e:
        e.state = run.state.value
        e.invoice = run.details.get("invoice")
        log.info("%s failed in state %s: %s", flow.name, run.state.value, e)
        raise
    return run.result()


# ---------------------------------------------------------------------------
# Channel request
# ---------------------------------------------------------------------------

class ChannelFlow:
    """Ask the server for an inbound channel to the local node."""

    name = "request-channel"
    path = "request-channel"
    params_type = ChannelParams
    fetched = State.PARAMS_FETCHED
    states = (
        State.START,
        State.PARAMS_FETCHED,
        State.PEER_CONNECTED,
        State.CALLBACK_SENT,
        State.CHANNEL_FUNDED,
        State.DONE,
    )

    def act(self, run: Run, params: ChannelParams, endpoint: Endpoint, node: Node) -> tuple[str, dict[str, Any]]:
        parse_node_uri(params.uri)
        node.connect_peer(params.uri)
        run.advance(State.PEER_CONNECTED)

        pubkey = node.get_pubkey()
        run.details["remoteid"] = pubkey
        return params.callback, {"remoteid": pubkey, "k1": params.k1, "private": 1 if params.private else 0}

    def finish(self, run: Run, params: ChannelParams, reply: dict[str, Any], node: Node) -> None:
        for key in ("txid", "channel_id"):
            if reply.get(key):
                run.details[key] = reply[key]

        if params.local_funding_sat is not None:
            peer = parse_node_uri(params.uri).pubkey
            node.fund_channel(peer, params.local_funding_sat, announce=not params.private)
            run.advance(State.CHANNEL_FUNDED)


# ---------------------------------------------------------------------------
# Withdraw request
# ---------------------------------------------------------------------------

class WithdrawFlow:
    """Receive *amount_msat* from the server by handing it a fresh invoice."""

    name = "request-withdraw"
    path = "request-withdraw"
    params_type = WithdrawParams
    fetched = State.PARAMS_FETCHED
    states = (
        State.START,
        State.PARAMS_FETCHED,
        State.VALIDATED,
        State.INVOICE_CREATED,
        State.CALLBACK_SENT,
        State.DONE,
    )

    def __init__(self, amount_msat: int, description: str | None = None) -> None:
        self.amount_msat = amount_msat
        self.description = description

    def act(self, run: Run, params: WithdrawParams, endpoint: Endpoint, node: Node) -> tuple[str, dict[str, Any]]:
        if not params.allows(self.amount_msat):
            raise ValidationError(
                f"Amount {self.amount_msat} msat is outside allowed range "
                f"[{params.min_withdrawable}, {params.max_withdrawable}]"
            )
        run.advance(State.VALIDATED)

        description = self.description if self.description is not None else params.default_description
        invoice = node.create_invoice(self.amount_msat, description)
        run.details["invoice"] = invoice
        run.advance(State.INVOICE_CREATED)
        return params.callback, {"k1": params.k1, "pr": invoice}

    def finish(self, run: Run, params: WithdrawParams, reply: dict[str, Any], node: Node) -> None:
        run.details["amount_msat"] = self.amount_msat


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class AuthFlow:
    """Prove control of the node key by signing a server challenge."""

    name = "request-auth"
    path = "auth-challenge"
    params_type = AuthChallenge
    fetched = State.CHALLENGE_RECEIVED
    states = (State.START, State.CHALLENGE_RECEIVED, State.SIGNED, State.DONE)

    response_path = "auth-response"

    def act(self, run: Run, params: AuthChallenge, endpoint: Endpoint, node: Node) -> tuple[str, dict[str, Any]]:
        signed = node.sign_message(params.k1_bytes)
        run.details["pubkey"] = signed.pubkey
        run.advance(State.SIGNED)
        return endpoint.join(self.response_path), {
            "k1": params.k1,
            "signature": signed.signature,
            "pubkey": signed.pubkey,
        }

    def finish(self, run: Run, params: AuthChallenge, reply: dict[str, Any], node: Node) -> None:
        pass

