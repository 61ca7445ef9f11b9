from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("lnurl-client")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .client import LnurlClient
from .config import Settings
from .endpoint import parse_node_uri, resolve
from .errors import (
    DecodeError,
    InvalidAddressError,
    LnurlError,
    NodeRpcError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from .flows import AuthFlow, ChannelFlow, State, WithdrawFlow, run_flow
from .node import ClnNode, Node
from .types import (
    AuthChallenge,
    ChannelParams,
    Endpoint,
    FlowResult,
    NodeUri,
    SignedArtifact,
    WithdrawParams,
)

__all__ = [
    "__version__",
    "LnurlClient",
    "Settings",
    "resolve",
    "parse_node_uri",
    "LnurlError",
    "InvalidAddressError",
    "TransportError",
    "DecodeError",
    "ProtocolError",
    "ValidationError",
    "NodeRpcError",
    "Node",
    "ClnNode",
    "State",
    "run_flow",
    "ChannelFlow",
    "WithdrawFlow",
    "AuthFlow",
    "Endpoint",
    "NodeUri",
    "ChannelParams",
    "WithdrawParams",
    "AuthChallenge",
    "SignedArtifact",
    "FlowResult",
]
