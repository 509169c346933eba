"""
Tests for the SSRF guard.

DNS is replaced by an in-memory resolver so the tests never touch the
network. IP literals resolve to themselves, as getaddrinfo does.
"""

import ipaddress
import socket

import pytest

from webpage_info.ssrf import (
    resolve_target,
    is_blocked_address,
    is_blocked_hostname,
    blocked_reason,
)
from webpage_info.exceptions import InvalidUrlError, SsrfBlockedError, TransportError, FetchError


DNS = {
    "example.com": ["93.184.216.34"],
    "dual.example.com": ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"],
    "rebind.example.com": ["93.184.216.34", "10.0.0.7"],
    "intranet.example.com": ["192.168.1.20"],
    "empty.example.com": [],
    "garbage.example.com": ["not-an-ip"],
}


def make_resolver(table=None):
    table = DNS if table is None else table
    calls = []

    async def resolver(host, port):
        calls.append((host, port))
        try:
            ipaddress.ip_address(host)
            return [host]
        except ValueError:
            pass
        if host not in table:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return list(table[host])

    resolver.calls = calls
    return resolver


class TestAddressClassification:
    @pytest.mark.parametrize("address", [
        "127.0.0.1",
        "127.8.9.10",
        "10.0.0.1",
        "172.16.5.4",
        "192.168.0.1",
        "169.254.169.254",
        "0.0.0.0",
        "0.1.2.3",
        "100.64.0.1",
        "224.0.0.1",
        "240.0.0.1",
        "255.255.255.255",
        "::1",
        "::",
        "fe80::1",
        "fc00::1",
        "fd12:3456::1",
        "ff02::1",
        "::ffff:127.0.0.1",
        "::ffff:10.1.2.3",
        "::ffff:169.254.169.254",
        "2002:7f00:1::",
    ])
    def test_blocked(self, address):
        assert is_blocked_address(address)

    @pytest.mark.parametrize("address", [
        "93.184.216.34",
        "8.8.8.8",
        "1.1.1.1",
        "2606:4700:4700::1111",
    ])
    def test_public(self, address):
        assert not is_blocked_address(address)

    def test_reason_names_the_range(self):
        assert blocked_reason(ipaddress.ip_address("127.0.0.1")) == "loopback"
        assert blocked_reason(ipaddress.ip_address("169.254.169.254")) == "link-local"
        assert blocked_reason(ipaddress.ip_address("10.0.0.1")) == "private"
        assert blocked_reason(ipaddress.ip_address("::ffff:127.0.0.1")).startswith("loopback")

    def test_zone_id_ignored(self):
        assert is_blocked_address("fe80::1%eth0")


class TestHostnames:
    @pytest.mark.parametrize("host", [
        "localhost",
        "LOCALHOST",
        "localhost.",
        "app.localhost",
        "printer.local",
        "db.internal",
        "metadata.google.internal",
        "metadata",
        "nas.lan",
        "mail.corp",
        "router.home.arpa",
    ])
    def test_internal_names(self, host):
        assert is_blocked_hostname(host)

    @pytest.mark.parametrize("host", ["example.com", "localhost.example.com", "internal.example.com"])
    def test_public_names(self, host):
        assert not is_blocked_hostname(host)


class TestResolveTarget:
    @pytest.mark.asyncio
    async def test_public_host_is_pinned(self):
        resolver = make_resolver()
        target = await resolve_target("https://example.com/path?q=1", resolver=resolver)

        assert target.address == "93.184.216.34"
        assert target.host == "example.com"
        assert target.port == 443
        assert target.scheme == "https"
        assert target.url == "https://example.com/path?q=1"
        assert resolver.calls == [("example.com", 443)]

    @pytest.mark.asyncio
    async def test_explicit_port(self):
        target = await resolve_target("http://example.com:8080/", resolver=make_resolver())
        assert target.port == 8080

    @pytest.mark.asyncio
    async def test_first_address_pinned_when_all_public(self):
        target = await resolve_target("http://dual.example.com/", resolver=make_resolver())
        assert target.address == "93.184.216.34"
        assert len(target.addresses) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "http://127.0.0.1/",
        "http://10.0.0.1/admin",
        "http://169.254.169.254/latest/meta-data/",
        "http://[::1]:8080/",
        "http://[::ffff:127.0.0.1]/",
        "http://intranet.example.com/",
    ])
    async def test_blocked_by_address(self, url):
        with pytest.raises(SsrfBlockedError) as exc_info:
            await resolve_target(url, resolver=make_resolver())
        assert exc_info.value.address is not None

    @pytest.mark.asyncio
    async def test_any_blocked_address_rejects_host(self):
        with pytest.raises(SsrfBlockedError) as exc_info:
            await resolve_target("http://rebind.example.com/", resolver=make_resolver())
        assert exc_info.value.address == "10.0.0.7"
        assert exc_info.value.host == "rebind.example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["http://localhost/", "http://db.internal:5432/", "https://printer.local/"])
    async def test_blocked_by_name_before_dns(self, url):
        resolver = make_resolver()
        with pytest.raises(SsrfBlockedError) as exc_info:
            await resolve_target(url, resolver=resolver)

        assert exc_info.value.address is None
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_resolver_answer_is_blocked(self):
        with pytest.raises(SsrfBlockedError):
            await resolve_target("http://garbage.example.com/", resolver=make_resolver())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url, address", [
        ("http://localhost:8000/", "127.0.0.1"),
        ("http://10.0.0.1/", "10.0.0.1"),
        ("http://169.254.169.254/latest/meta-data/", "169.254.169.254"),
        ("http://db.internal:5432/", "10.1.2.3"),
    ])
    async def test_blocking_disabled(self, url, address):
        resolver = make_resolver({"localhost": ["127.0.0.1"], "db.internal": ["10.1.2.3"]})

        target = await resolve_target(url, block_private_ips=False, resolver=resolver)

        assert target.address == address

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "file:///etc/passwd",
        "ftp://example.com/file",
        "gopher://example.com/",
        "javascript:alert(1)",
    ])
    async def test_blocked_schemes(self, url):
        resolver = make_resolver()
        with pytest.raises(SsrfBlockedError) as exc_info:
            await resolve_target(url, resolver=resolver)

        assert exc_info.value.details["scheme"] == url.split(":")[0]
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_scheme_blocked_even_with_blocking_disabled(self):
        with pytest.raises(SsrfBlockedError):
            await resolve_target("file:///etc/passwd", block_private_ips=False, resolver=make_resolver())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "example.com/no-scheme",
        "http://",
        "http://example.com:99999/",
        "http://[::1/",
    ])
    async def test_invalid_urls(self, url):
        resolver = make_resolver()
        with pytest.raises(InvalidUrlError):
            await resolve_target(url, resolver=resolver)
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_dns_failure_is_transport_error(self):
        with pytest.raises(TransportError):
            await resolve_target("http://nxdomain.example.com/", resolver=make_resolver())

    @pytest.mark.asyncio
    async def test_empty_answer_is_transport_error(self):
        with pytest.raises(TransportError):
            await resolve_target("http://empty.example.com/", resolver=make_resolver())

    def test_errors_share_base_class(self):
        assert issubclass(SsrfBlockedError, FetchError)
        assert issubclass(InvalidUrlError, FetchError)
        assert issubclass(TransportError, FetchError)
