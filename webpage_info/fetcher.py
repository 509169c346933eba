"""
Bounded streaming fetch.

Downloads a page without trusting the server:
- The whole operation (DNS, connect, every redirect hop, body) shares one
  timeout
- Redirects are followed by hand so the SSRF guard re-validates every hop
- Each request goes to the address the guard validated, never to a fresh
  DNS answer
- The body is streamed and decoded incrementally; the decoded size is checked
  after every chunk and the transfer aborted once it passes max_body_size

Failures surface as FetchError subclasses. Nothing is retried here.
"""

import asyncio
from typing import Optional
from urllib.parse import urljoin

import httpx

from .config import FetchOptions
from .schemas import HttpInfo
from .ssrf import Resolver, ResolvedTarget, resolve_target
from .preprocessor import Preprocessor
from .exceptions import (
    BodyTooLargeError,
    FetchTimeoutError,
    HTTPStatusError,
    TooManyRedirectsError,
    TransportError,
)
from .logger import get_module_logger

logger = get_module_logger("fetcher")

REDIRECT_STATUSES = frozenset([301, 302, 303, 307, 308])

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def _pinned_request(client: httpx.AsyncClient, target: ResolvedTarget) -> httpx.Request:
    """
    Build a GET for target.url that connects to target.address.

    The URL host is swapped for the validated IP; the Host header keeps the
    original name for virtual hosting, and sni_hostname keeps TLS (SNI and
    certificate verification) bound to that name as well.
    """
    original = httpx.URL(target.url)
    address = f"[{target.address}]" if ":" in target.address else target.address
    pinned = original.copy_with(host=address)

    extensions = {}
    if target.scheme == "https":
        extensions["sni_hostname"] = original.raw_host.decode("ascii")

    return client.build_request(
        "GET",
        pinned,
        headers={"Host": original.netloc.decode("ascii")},
        extensions=extensions,
    )


async def _read_body(response: httpx.Response, max_body_size: int, url: str) -> bytes:
    """Read the decoded body, aborting as soon as it grows past max_body_size."""
    # Content-Length counts encoded bytes, so it only proves the body too
    # large when no Content-Encoding is applied.
    declared = response.headers.get("content-length")
    if declared and "content-encoding" not in response.headers:
        try:
            declared_size = int(declared)
        except ValueError:
            declared_size = None
        if declared_size is not None and declared_size > max_body_size:
            raise BodyTooLargeError(
                f"Response body of {declared_size} bytes exceeds limit of {max_body_size}",
                limit=max_body_size, details={"url": url, "content_length": declared_size}
            )

    chunks = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > max_body_size:
            logger.warning(f"Aborting {url}: body exceeded {max_body_size} bytes")
            raise BodyTooLargeError(
                f"Response body exceeds limit of {max_body_size} bytes",
                limit=max_body_size, details={"url": url}
            )
        chunks.append(chunk)

    return b"".join(chunks)


def _content_type(response: httpx.Response) -> Optional[str]:
    value = response.headers.get("content-type")
    if not value:
        return None
    return value.split(";", 1)[0].strip().lower() or None


async def _fetch(
    url: str,
    options: FetchOptions,
    transport: Optional[httpx.AsyncBaseTransport],
    resolver: Optional[Resolver]
) -> HttpInfo:
    headers = {"User-Agent": options.user_agent, "Accept": ACCEPT_HEADER}
    headers.update(options.headers)

    # trust_env=False: an environment proxy would do its own DNS lookup and
    # defeat address pinning.
    async with httpx.AsyncClient(
        headers=headers,
        timeout=httpx.Timeout(options.timeout),
        verify=not options.allow_insecure,
        follow_redirects=False,
        trust_env=False,
        transport=transport,
    ) as client:
        current_url = url
        redirect_count = 0

        while True:
            target = await resolve_target(current_url, options.block_private_ips, resolver)
            request = _pinned_request(client, target)
            logger.debug(f"GET {current_url} via {target.address}")

            try:
                response = await client.send(request, stream=True)
            except httpx.TimeoutException as e:
                raise FetchTimeoutError(f"Timed out requesting {current_url}: {e}", timeout=options.timeout)
            except httpx.HTTPError as e:
                raise TransportError(f"Request to {current_url} failed: {e}", details={"url": current_url})

            try:
                location = response.headers.get("location")
                if response.status_code in REDIRECT_STATUSES and location:
                    if redirect_count >= options.max_redirects:
                        raise TooManyRedirectsError(
                            f"Exceeded {options.max_redirects} redirects at {current_url}",
                            max_redirects=options.max_redirects,
                            details={"url": current_url, "location": location}
                        )
                    redirect_count += 1
                    current_url = urljoin(current_url, location.strip())
                    logger.info(f"Redirect {redirect_count} → {current_url}")
                    continue

                if not response.is_success:
                    raise HTTPStatusError(
                        f"HTTP {response.status_code} for {current_url}",
                        status_code=response.status_code, url=current_url
                    )

                try:
                    raw = await _read_body(response, options.max_body_size, current_url)
                except httpx.TimeoutException as e:
                    raise FetchTimeoutError(f"Timed out reading {current_url}: {e}", timeout=options.timeout)
                except httpx.HTTPError as e:
                    raise TransportError(f"Reading {current_url} failed: {e}", details={"url": current_url})

                body, charset = Preprocessor().decode(raw, response.headers.get("content-type"))
                logger.info(f"Fetched {current_url}: HTTP {response.status_code}, {len(raw)} bytes ({charset})")

                return HttpInfo(
                    url=current_url,
                    status_code=response.status_code,
                    headers=list(response.headers.multi_items()),
                    content_type=_content_type(response),
                    redirect_count=redirect_count,
                    remote_address=target.address,
                    body=body,
                )
            finally:
                await response.aclose()


async def fetch(
    url: str,
    options: Optional[FetchOptions] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    resolver: Optional[Resolver] = None
) -> HttpInfo:
    """
    Fetch url under the safety limits in options.

    Args:
        url: Absolute http(s) URL
        options: FetchOptions (defaults if omitted)
        transport: httpx transport override (tests, custom TLS stacks)
        resolver: Async (host, port) → addresses override for the SSRF guard

    Returns:
        HttpInfo for the final hop

    Raises:
        InvalidUrlError, SsrfBlockedError, TooManyRedirectsError,
        HTTPStatusError, BodyTooLargeError, FetchTimeoutError, TransportError
    """
    options = options or FetchOptions()
    logger.info(f"Fetching {url}")

    try:
        return await asyncio.wait_for(
            _fetch(url, options, transport, resolver),
            timeout=options.timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Fetching {url} exceeded {options.timeout}s")
        raise FetchTimeoutError(
            f"Fetching {url} exceeded {options.timeout}s",
            timeout=options.timeout, details={"url": url}
        )
