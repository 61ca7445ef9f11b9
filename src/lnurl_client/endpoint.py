"""Turn user-supplied addresses into LNURL base URLs.

An address is either an absolute ``http``/``https`` URL or a bare
``host:port`` pair, where *host* is a dotted IPv4 literal, a bracketed IPv6
literal or a DNS hostname. Bare pairs are served over ``https``.
"""

from __future__ import annotations

import ipaddress
import re

import httpx

from .errors import DecodeError, InvalidAddressError
from .types import Endpoint, NodeUri

_DEFAULT_SCHEME = "https"
_DEFAULT_LN_PORT = 9735

_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_PUBKEY = re.compile(r"^0[23][0-9a-fA-F]{64}$")


def resolve(address: str) -> Endpoint:
    """Resolve *address* to an :class:`Endpoint`.

    >>> resolve("192.168.1.10:8080")
    Endpoint(url='https://192.168.1.10:8080')
    """
    url = _parse_url(address)
    if url is not None:
        return Endpoint(url=address.rstrip("/"))

    split = split_host_port(address)
    if split is None:
        raise InvalidAddressError(address)
    host, port = split
    return Endpoint(url=f"{_DEFAULT_SCHEME}://{host}:{port}")


def split_host_port(value: str) -> tuple[str, int] | None:
    """Split ``host:port``; returns None unless both halves are valid."""
    host, sep, port = value.rpartition(":")
    if not sep or not _is_port(port) or not is_valid_host(host):
        return None
    return host, int(port)


def is_valid_host(host: str) -> bool:
    if host.startswith("[") and host.endswith("]"):
        try:
            ipaddress.IPv6Address(host[1:-1])
        except ValueError:
            return False
        return True

    labels = host.split(".")
    if all(label.isdigit() for label in labels):
        # Digits only: must be a real dotted quad, never a hostname.
        try:
            ipaddress.IPv4Address(host)
        except ValueError:
            return False
        return True

    if len(host) > 253:
        return False
    return all(_LABEL.match(label) for label in labels)


def parse_node_uri(uri: str) -> NodeUri:
    """Parse a remote node URI ``pubkey@host[:port]`` advertised by a server."""
    pubkey, sep, address = uri.partition("@")
    if not sep or not _PUBKEY.match(pubkey):
        raise DecodeError(f"Invalid node URI: {uri!r}")

    split = split_host_port(address)
    if split is not None:
        host, port = split
    elif is_valid_host(address):
        host, port = address, _DEFAULT_LN_PORT
    else:
        raise DecodeError(f"Invalid node URI: {uri!r}")
    return NodeUri(pubkey=pubkey.lower(), host=host.strip("[]"), port=port)


def _parse_url(address: str) -> httpx.URL | None:
    try:
        url = httpx.URL(address)
    except (httpx.InvalidURL, TypeError):
        return None
    if url.scheme not in ("http", "https") or not url.host:
        return None
    if "://" not in address:
        return None
    return url


def _is_port(value: str) -> bool:
    return value.isascii() and value.isdigit() and int(value) <= 0xFFFF
