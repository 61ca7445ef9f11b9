from __future__ import annotations

import re
from dataclasses import MISSING, dataclass, field, fields
from typing import Any, Literal, TypeVar

import httpx

from .errors import DecodeError

T = TypeVar("T")

CallbackMethod = Literal["get", "post"]


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Endpoint:
    """Absolute base URL of an LNURL server, without a trailing slash."""

    url: str

    def join(self, path: str) -> str:
        """Append *path* to the base path, keeping any query string in place."""
        url = httpx.URL(self.url)
        return str(url.copy_with(path=f"{url.path.rstrip('/')}/{path.lstrip('/')}"))


@dataclass(frozen=True)
class NodeUri:
    pubkey: str
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.pubkey}@{self.host}:{self.port}"


# ---------------------------------------------------------------------------
# Server-issued parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChannelParams:
    uri: str
    callback: str
    k1: str
    tag: str | None = None
    private: bool = False
    local_funding_sat: int | None = None

    def __post_init__(self) -> None:
        _require_str(self, "uri", "callback", "k1")
        if not isinstance(self.private, bool):
            raise DecodeError(f"private must be a boolean, got {self.private!r}")
        if self.local_funding_sat is not None and not _is_amount(self.local_funding_sat):
            raise DecodeError(f"localFundingSat must be a non-negative integer, got {self.local_funding_sat!r}")


@dataclass(frozen=True)
class WithdrawParams:
    callback: str
    k1: str
    min_withdrawable: int
    max_withdrawable: int
    default_description: str = ""
    tag: str | None = None

    def __post_init__(self) -> None:
        _require_str(self, "callback", "k1")
        if not _is_amount(self.min_withdrawable) or not _is_amount(self.max_withdrawable):
            raise DecodeError(
                f"withdraw limits must be non-negative integers, got "
                f"[{self.min_withdrawable!r}, {self.max_withdrawable!r}]"
            )
        if self.min_withdrawable > self.max_withdrawable:
            raise DecodeError(
                f"minWithdrawable {self.min_withdrawable} exceeds maxWithdrawable {self.max_withdrawable}"
            )

    def allows(self, amount_msat: int) -> bool:
        return self.min_withdrawable <= amount_msat <= self.max_withdrawable


@dataclass(frozen=True)
class AuthChallenge:
    k1: str

    def __post_init__(self) -> None:
        _require_str(self, "k1")
        try:
            bytes.fromhex(self.k1)
        except ValueError:
            raise DecodeError(f"k1 is not hex-encoded: {self.k1!r}") from None
        # Signed and echoed back in the same spelling.
        object.__setattr__(self, "k1", self.k1.lower())

    @property
    def k1_bytes(self) -> bytes:
        """The challenge as signed: the hex-decoded nonce."""
        return bytes.fromhex(self.k1)


# ---------------------------------------------------------------------------
# Node artifacts and flow results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SignedArtifact:
    signature: str
    pubkey: str


@dataclass(frozen=True)
class FlowResult:
    flow: str
    states: tuple[str, ...]
    details: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# JSON key mapping (camelCase -> snake_case)
# ---------------------------------------------------------------------------

def _to_snake(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


def from_camel(data: dict[str, Any]) -> dict[str, Any]:
    return {_to_snake(k): v for k, v in data.items()}


def parse(cls: type[T], data: Any) -> T:
    """Build *cls* from a decoded JSON object, ignoring unknown keys.

    Raises DecodeError when *data* is not an object or a required field is missing.
    """
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object for {cls.__name__}, got {type(data).__name__}")
    mapped = from_camel(data)
    known = fields(cls)  # type: ignore[arg-type]
    missing = [
        f.name for f in known
        if f.name not in mapped and f.default is MISSING and f.default_factory is MISSING
    ]
    if missing:
        raise DecodeError(f"{cls.__name__} response is missing field(s): {', '.join(missing)}")
    names = {f.name for f in known}
    return cls(**{k: v for k, v in mapped.items() if k in names})


def _require_str(obj: Any, *names: str) -> None:
    for name in names:
        value = getattr(obj, name)
        if not isinstance(value, str) or not value:
            raise DecodeError(f"{name} must be a non-empty string, got {value!r}")


def _is_amount(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
