from datetime import datetime, timezone
import socket
import threading

import requests

from collaborators import StaticReputationProvider, gather_context
from config import Settings
import domain_info
from domain_info import DNSGeoResolver, RDAPWhoisResolver, registrable_domain
from models import IPInfo, ReputationInfo, WhoisInfo
import tls_check


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class _Resolver:
    def __init__(self, info):
        self.info = info

    def resolve(self, host):
        return self.info


class _Whois:
    def lookup(self, host):
        return WhoisInfo(domain=registrable_domain(host), domain_age_days=400)


class _NoCertificate:
    def inspect(self, url):
        return None


class _Broken:
    def resolve(self, host):
        raise RuntimeError("resolver crashed")

    def lookup(self, host):
        raise RuntimeError("whois crashed")


def test_gather_context_assembles_collaborator_output():
    analysis_input = gather_context(
        "example.com/login",
        html_content="<p>hi</p>",
        ip_resolver=_Resolver(IPInfo(ip="198.51.100.4", country="Germany")),
        whois_resolver=_Whois(),
        certificate_inspector=_NoCertificate(),
    )

    assert analysis_input.url == "https://example.com/login"
    assert analysis_input.ip_address == "198.51.100.4"
    assert analysis_input.hosting_country == "Germany"
    assert analysis_input.html_content == "<p>hi</p>"
    assert analysis_input.whois_info.domain_age_days == 400
    assert analysis_input.certificate_info is None
    assert analysis_input.behavioral_signals is None
    assert analysis_input.reputation is None


def test_unknown_geolocation_is_not_passed_on():
    analysis_input = gather_context(
        "https://example.com",
        ip_resolver=_Resolver(IPInfo.unknown()),
        whois_resolver=_Whois(),
        certificate_inspector=_NoCertificate(),
    )
    assert analysis_input.ip_address is None
    assert analysis_input.hosting_country is None


def test_failing_collaborators_fall_back_to_placeholders(caplog):
    analysis_input = gather_context(
        "https://www.example.com",
        ip_resolver=_Broken(),
        whois_resolver=_Broken(),
        certificate_inspector=_NoCertificate(),
    )

    assert analysis_input.ip_address is None
    assert analysis_input.whois_info == WhoisInfo.unknown("example.com")
    assert "lookup for www.example.com failed" in caplog.text


def test_slow_collaborator_times_out():
    release = threading.Event()

    class _Slow:
        def resolve(self, host):
            release.wait(5)
            return IPInfo(ip="198.51.100.4", country="Germany")

    try:
        analysis_input = gather_context(
            "https://example.com",
            ip_resolver=_Slow(),
            whois_resolver=_Whois(),
            certificate_inspector=_NoCertificate(),
            settings=Settings(context_timeout=0.2),
        )
    finally:
        release.set()

    assert analysis_input.ip_address is None
    assert analysis_input.whois_info.domain_age_days == 400


def test_static_reputation_provider_matches_registered_domain():
    provider = StaticReputationProvider([" Evil-Login.com ", ""], source="feed")

    hit = provider.lookup("https://secure.evil-login.com/path")
    assert hit == ReputationInfo(blacklist_hits=1, sources=("feed",), categories=("Phishing",))
    assert provider.lookup("https://example.com") == ReputationInfo()


def test_registrable_domain():
    assert registrable_domain("a.b.Example.com") == "example.com"
    assert registrable_domain("localhost") == "localhost"
    assert registrable_domain("shop.example.co.uk") == "example.co.uk"
    assert registrable_domain("192.0.2.1") == "192.0.2.1"


def test_rdap_lookup_uses_multi_label_suffix(monkeypatch):
    requested = []

    def fake_get(url, **kwargs):
        requested.append(url)
        return FakeResponse(404)

    monkeypatch.setattr(domain_info.requests, "get", fake_get)
    info = RDAPWhoisResolver(Settings()).lookup("shop.example.co.uk")

    assert requested == ["https://rdap.org/domain/example.co.uk"]
    assert info.domain == "example.co.uk"


def test_static_reputation_provider_ignores_public_suffix():
    provider = StaticReputationProvider(["evil.co.uk"])
    assert provider.lookup("https://login.evil.co.uk").blacklist_hits == 1
    assert provider.lookup("https://shop.example.co.uk").blacklist_hits == 0


def test_dns_geo_resolver_with_geolocation(monkeypatch):
    monkeypatch.setattr(
        domain_info.socket,
        "getaddrinfo",
        lambda host, port, family: [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("203.0.113.9", 0))],
    )
    payload = {"country_name": "Netherlands", "region": "North Holland", "city": "Amsterdam", "org": "AS64500 Example"}
    monkeypatch.setattr(domain_info.requests, "get", lambda *args, **kwargs: FakeResponse(200, payload))

    info = DNSGeoResolver(Settings()).resolve("example.com")
    assert info.ip == "203.0.113.9"
    assert info.country == "Netherlands"
    assert info.city == "Amsterdam"
    assert info.org == "AS64500 Example"


def test_dns_geo_resolver_without_geolocation(monkeypatch):
    monkeypatch.setattr(
        domain_info.socket,
        "getaddrinfo",
        lambda host, port, family: [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("203.0.113.9", 0))],
    )

    def offline(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(domain_info.requests, "get", offline)

    info = DNSGeoResolver(Settings()).resolve("example.com")
    assert info.ip == "203.0.113.9"
    assert info.country == "Unknown (DNS only)"
    assert info.country_known is False


def test_dns_geo_resolver_dns_failure(monkeypatch):
    def no_dns(*args, **kwargs):
        raise socket.gaierror("name not known")

    monkeypatch.setattr(domain_info.socket, "getaddrinfo", no_dns)
    info = DNSGeoResolver(Settings()).resolve("nope.invalid")
    assert info == IPInfo.unknown()
    assert info.country_known is False


RDAP_PAYLOAD = {
    "events": [
        {"eventAction": "registration", "eventDate": "2024-03-01T00:00:00Z"},
        {"eventAction": "expiration", "eventDate": "2025-03-01T00:00:00Z"},
    ],
    "entities": [
        {"roles": ["registrar"], "vcardArray": ["vcard", [["version", {}, "text", "4.0"], ["fn", {}, "text", "Example Registrar"]]]},
        {
            "roles": ["registrant"],
            "vcardArray": [
                "vcard",
                [
                    ["org", {}, "text", "Example Org"],
                    ["adr", {}, "text", ["", "", "", "", "", "", "Iceland"]],
                ],
            ],
        },
    ],
    "nameservers": [{"ldhName": "NS1.EXAMPLE.NET"}, {"ldhName": "ns2.example.net"}],
}


def test_rdap_lookup_parses_registration_data(monkeypatch):
    requested = []

    def fake_get(url, **kwargs):
        requested.append(url)
        return FakeResponse(200, RDAP_PAYLOAD)

    monkeypatch.setattr(domain_info.requests, "get", fake_get)
    resolver = RDAPWhoisResolver(Settings(), now=lambda: datetime(2024, 3, 11, tzinfo=timezone.utc))

    info = resolver.lookup("login.example.com")
    assert requested == ["https://rdap.org/domain/example.com"]
    assert info.domain == "example.com"
    assert info.domain_age_days == 10
    assert info.registrar == "Example Registrar"
    assert info.registration_date == "2024-03-01"
    assert info.expiration_date == "2025-03-01"
    assert info.registrant_country == "Iceland"
    assert info.registrant_organization == "Example Org"
    assert info.name_servers == ("ns1.example.net", "ns2.example.net")


def test_rdap_lookup_not_found_is_unknown(monkeypatch):
    monkeypatch.setattr(domain_info.requests, "get", lambda *args, **kwargs: FakeResponse(404))
    info = RDAPWhoisResolver(Settings()).lookup("example.com")
    assert info == WhoisInfo.unknown("example.com")
    assert info.is_known is False


def test_rdap_lookup_skips_ip_hosts(monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(domain_info.requests, "get", unexpected)
    assert RDAPWhoisResolver(Settings()).lookup("192.0.2.1").domain_age_days is None


def test_certificate_trust_score():
    assert tls_check.trust_score(True, False, 200) == 90
    assert tls_check.trust_score(True, False, 10) == 60
    assert tls_check.trust_score(False, False, None) == 10
    assert tls_check.trust_score(True, True, 200) == 0
