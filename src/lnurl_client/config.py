from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .types import CallbackMethod

RPC_PATH_ENV = "CLN_RPC_PATH"
DEFAULT_NETWORK = "testnet4"
DEFAULT_HTTP_TIMEOUT = 60.0


def default_rpc_path(network: str = DEFAULT_NETWORK) -> str:
    """Core Lightning's control socket for *network* under the default lightning-dir."""
    return os.path.join(os.path.expanduser("~"), ".lightning", network, "lightning-rpc")


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at startup and passed down explicitly."""

    rpc_path: str
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    callback_method: CallbackMethod = "post"

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        *,
        rpc_path: str | None = None,
        http_timeout: float | None = None,
        callback_method: CallbackMethod | None = None,
    ) -> Settings:
        """Build settings from *env* (default ``os.environ``); explicit arguments win."""
        env = os.environ if env is None else env
        return cls(
            rpc_path=rpc_path or env.get(RPC_PATH_ENV) or default_rpc_path(),
            http_timeout=DEFAULT_HTTP_TIMEOUT if http_timeout is None else http_timeout,
            callback_method=callback_method or "post",
        )
