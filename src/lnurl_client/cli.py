"""``lnurl-client`` command line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence

from .client import LnurlClient
from .config import RPC_PATH_ENV, Settings
from .endpoint import resolve
from .errors import LnurlError
from .flows import AuthFlow, ChannelFlow, Flow, WithdrawFlow, run_flow
from .node import ClnNode, Node
from .types import FlowResult


def _amount(value: str) -> int:
    try:
        amount = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"amount_msat must be a valid number, got {value!r}") from None
    if amount < 0:
        raise argparse.ArgumentTypeError("amount_msat must not be negative")
    return amount


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lnurl-client", description="Run LNURL channel, withdraw and auth flows against a local Core Lightning node.")
    parser.add_argument("--rpc-path", help=f"Core Lightning RPC socket (default: ${RPC_PATH_ENV} or ~/.lightning/testnet4/lightning-rpc)")
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default: 60)")
    parser.add_argument("--callback-method", choices=("get", "post"), help="how callbacks are delivered (default: post)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log each protocol step")

    sub = parser.add_subparsers(dest="command", metavar="command", required=True)

    channel = sub.add_parser("request-channel", help="request an inbound channel")
    channel.add_argument("address", help="server URL or host:port")

    withdraw = sub.add_parser("request-withdraw", help="withdraw funds into a fresh invoice")
    withdraw.add_argument("address", help="server URL or host:port")
    withdraw.add_argument("amount_msat", type=_amount)
    withdraw.add_argument("description", nargs="?")

    auth = sub.add_parser("request-auth", aliases=["lnurl-auth"], help="authenticate with the node key")
    auth.add_argument("address", help="server URL or host:port")
    return parser


def _flow_for(args: argparse.Namespace) -> Flow:
    if args.command == "request-channel":
        return ChannelFlow()
    if args.command == "request-withdraw":
        return WithdrawFlow(args.amount_msat, args.description)
    return AuthFlow()


def _report(result: FlowResult) -> None:
    details = result.details
    if result.flow == "request-channel":
        print("Channel request accepted.")
    elif result.flow == "request-withdraw":
        print(f"Withdrawal of {details['amount_msat']} msat accepted.")
    else:
        print("Authentication successful.")
    for key, value in details.items():
        if key != "amount_msat":
            print(f"  {key}: {value}")


def main(argv: Sequence[str] | None = None, *, node_factory: Callable[[Settings], Node] = ClnNode, http: LnurlClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    settings = Settings.from_env(rpc_path=args.rpc_path, http_timeout=args.timeout, callback_method=args.callback_method)

    try:
        endpoint = resolve(args.address)
        flow = _flow_for(args)
        node = node_factory(settings)
        with http or LnurlClient(timeout=settings.http_timeout, callback_method=settings.callback_method) as client:
            result = run_flow(flow, endpoint, client, node)
    except LnurlError as e:
        print(f"Error ({e.kind}): {e}", file=sys.stderr)
        if e.invoice:
            print(f"Invoice was created but not redeemed: {e.invoice}", file=sys.stderr)
        return 1

    _report(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
