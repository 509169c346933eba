"""
SSRF guard for the fetch path.

Before any connection is made, a URL is checked and pinned:
1. Only http and https are allowed
2. Hostnames that are internal by name (localhost, *.internal, *.local ...) are rejected
3. The hostname is resolved once, asynchronously
4. Every resolved address is classified; loopback, private, link-local
   (including the 169.254.169.254 cloud metadata endpoint), multicast,
   reserved and unspecified addresses are rejected
5. The caller gets a ResolvedTarget naming the exact address to connect to

Connecting to ResolvedTarget.address, instead of handing the hostname to the
HTTP client, closes the DNS-rebinding window: a second lookup could return a
different (internal) address than the one that was checked.

The fetcher calls resolve_target() again for every redirect hop.
"""

import asyncio
import ipaddress
import socket
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import urlsplit

from .exceptions import InvalidUrlError, SsrfBlockedError, TransportError
from .logger import get_module_logger

logger = get_module_logger("ssrf")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# (host, port) → list of address strings
Resolver = Callable[[str, int], Awaitable[list[str]]]

ALLOWED_SCHEMES = {"http": 80, "https": 443}

BLOCKED_HOSTNAMES = frozenset(["localhost", "metadata.google.internal", "metadata"])

# Suffixes reserved for internal/non-public names (RFC 6761, RFC 6762, RFC 8375
# and the de-facto corporate ones)
BLOCKED_HOST_SUFFIXES = (
    ".localhost",
    ".local",
    ".internal",
    ".lan",
    ".corp",
    ".home.arpa",
)


@dataclass(frozen=True)
class ResolvedTarget:
    """A validated URL together with the address the request must go to."""
    url: str
    scheme: str
    host: str
    port: int
    address: str                    # Connect here, and only here
    addresses: tuple[str, ...]      # Everything the resolver returned


def blocked_reason(ip: IPAddress) -> Optional[str]:
    """
    Why an address must not be contacted, or None if it is public.

    IPv6 addresses that embed an IPv4 address (IPv4-mapped ::ffff:a.b.c.d,
    6to4 2002::/16) are judged by the embedded address too.
    """
    if isinstance(ip, ipaddress.IPv6Address):
        embedded = ip.ipv4_mapped or ip.sixtofour
        if embedded is not None:
            reason = blocked_reason(embedded)
            if reason:
                return f"{reason} (embedded in {ip})"

    if ip.is_loopback:
        return "loopback"
    if ip.is_link_local:
        return "link-local"
    if ip.is_unspecified:
        return "unspecified"
    if isinstance(ip, ipaddress.IPv4Address) and ip.packed[0] == 0:
        return "this-network"
    if ip.is_private:
        return "private"
    if ip.is_multicast:
        return "multicast"
    if ip.is_reserved:
        return "reserved"
    if not ip.is_global:
        # Shared address space (100.64.0.0/10) and other special-purpose ranges
        return "non-global"
    return None


def is_blocked_address(address: Union[str, IPAddress]) -> bool:
    """True if the address is loopback, private, link-local or otherwise non-public."""
    ip = address if not isinstance(address, str) else ipaddress.ip_address(address.split("%")[0])
    return blocked_reason(ip) is not None


def is_blocked_hostname(host: str) -> bool:
    """True if the name itself marks an internal host."""
    host = host.lower().rstrip(".")
    return host in BLOCKED_HOSTNAMES or host.endswith(BLOCKED_HOST_SUFFIXES)


async def system_resolver(host: str, port: int) -> list[str]:
    """Resolve host through the event loop's getaddrinfo (runs off the loop thread)."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)

    addresses = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        # Drop IPv6 zone ids (fe80::1%eth0)
        address = sockaddr[0].split("%")[0]
        if address not in addresses:
            addresses.append(address)
    return addresses


def _split_url(url: str) -> tuple[str, str, int]:
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError as e:
        raise InvalidUrlError(f"Invalid URL {url!r}: {e}", details={"url": url})

    scheme = parsed.scheme.lower()
    if not scheme:
        raise InvalidUrlError(f"URL has no scheme: {url!r}", details={"url": url})
    if scheme not in ALLOWED_SCHEMES:
        # file:, gopher:, ftp: and the like
        logger.warning(f"Blocked request with scheme {scheme!r}: {url}")
        raise SsrfBlockedError(
            f"Blocked scheme {scheme!r}, only http/https allowed",
            host=parsed.hostname or "", details={"url": url, "scheme": scheme}
        )

    host = parsed.hostname
    if not host:
        raise InvalidUrlError(f"URL has no host: {url!r}", details={"url": url})

    return scheme, host, port or ALLOWED_SCHEMES[scheme]


async def resolve_target(
    url: str,
    block_private_ips: bool = True,
    resolver: Optional[Resolver] = None
) -> ResolvedTarget:
    """
    Validate url and resolve it to the single address the request will use.

    Args:
        url: Absolute http(s) URL
        block_private_ips: Reject internal hostnames and non-public addresses
        resolver: Async (host, port) → addresses; defaults to system DNS

    Returns:
        ResolvedTarget pinned to the first resolved address

    Raises:
        InvalidUrlError: Malformed URL, or no scheme or host
        SsrfBlockedError: Scheme other than http/https, internal hostname,
            or a blocked resolved address
        TransportError: The hostname could not be resolved
    """
    scheme, host, port = _split_url(url)

    if block_private_ips and is_blocked_hostname(host):
        logger.warning(f"Blocked request to internal host: {host}")
        raise SsrfBlockedError(f"Blocked request to internal host: {host}", host=host)

    resolve = resolver or system_resolver
    try:
        addresses = await resolve(host, port)
    except UnicodeError as e:
        # Hostnames the IDNA codec rejects
        raise InvalidUrlError(f"Invalid hostname {host!r}: {e}", details={"url": url})
    except OSError as e:
        raise TransportError(f"Could not resolve {host}: {e}", details={"host": host})

    if not addresses:
        raise TransportError(f"No addresses found for {host}", details={"host": host})

    if block_private_ips:
        for address in addresses:
            try:
                ip = ipaddress.ip_address(address.split("%")[0])
            except ValueError:
                raise SsrfBlockedError(
                    f"Resolver returned an unparseable address for {host}: {address!r}",
                    host=host, address=address
                )
            reason = blocked_reason(ip)
            if reason:
                logger.warning(f"Blocked request to {reason} address {ip} (resolved from {host})")
                raise SsrfBlockedError(
                    f"Blocked request to {reason} address {ip} (resolved from {host})",
                    host=host, address=str(ip), details={"reason": reason}
                )

    logger.debug(f"{host} resolved to {addresses}; pinning {addresses[0]}")
    return ResolvedTarget(
        url=url,
        scheme=scheme,
        host=host,
        port=port,
        address=addresses[0],
        addresses=tuple(addresses),
    )
