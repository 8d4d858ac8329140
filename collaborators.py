"""Capability interfaces for auxiliary data and the concurrent context gatherer.

Providers never raise into the engine: a provider that errors or exceeds its
timeout resolves to the documented unknown placeholder (or ``None``).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
import logging
import time
from typing import Callable, Dict, Iterable, Optional, Protocol

from config import Settings, get_settings
from domain_info import DNSGeoResolver, RDAPWhoisResolver, registrable_domain
from models import (
    AnalysisInput,
    BehavioralSignals,
    CertificateInfo,
    IPInfo,
    ReputationInfo,
    WhoisInfo,
)
from tls_check import TLSCertificateInspector
from url_features import parse_url

logger = logging.getLogger(__name__)


class IPResolver(Protocol):
    def resolve(self, host: str) -> IPInfo: ...


class WhoisResolver(Protocol):
    def lookup(self, host: str) -> WhoisInfo: ...


class CertificateInspector(Protocol):
    def inspect(self, url: str) -> Optional[CertificateInfo]: ...


class BehavioralSimulator(Protocol):
    def simulate(self, url: str) -> Optional[BehavioralSignals]: ...


class ReputationProvider(Protocol):
    def lookup(self, url: str) -> Optional[ReputationInfo]: ...


class NullBehavioralSimulator:
    """No sandbox available: behavioral signals stay unknown."""

    def simulate(self, url: str) -> Optional[BehavioralSignals]:
        return None


class NullReputationProvider:
    def lookup(self, url: str) -> Optional[ReputationInfo]:
        return None


class StaticReputationProvider:
    """Reputation from a fixed blocklist of domains, e.g. a cached feed export."""

    def __init__(self, blocked_domains: Iterable[str], source: str = "local-blocklist"):
        self.blocked = {d.strip().lower() for d in blocked_domains if d and d.strip()}
        self.source = source

    def lookup(self, url: str) -> Optional[ReputationInfo]:
        host = parse_url(url)["host"].lower()
        if host in self.blocked or registrable_domain(host) in self.blocked:
            return ReputationInfo(blacklist_hits=1, sources=(self.source,), categories=("Phishing",))
        return ReputationInfo()


def gather_context(
    url: str,
    html_content: Optional[str] = None,
    ip_resolver: Optional[IPResolver] = None,
    whois_resolver: Optional[WhoisResolver] = None,
    certificate_inspector: Optional[CertificateInspector] = None,
    behavioral_simulator: Optional[BehavioralSimulator] = None,
    reputation_provider: Optional[ReputationProvider] = None,
    settings: Optional[Settings] = None,
) -> AnalysisInput:
    """Query every collaborator concurrently and build the AnalysisInput."""
    settings = settings or get_settings()
    parsed = parse_url(url)
    normalized, host = parsed["normalized"], parsed["host"].lower()

    ip_resolver = ip_resolver or DNSGeoResolver(settings)
    whois_resolver = whois_resolver or RDAPWhoisResolver(settings)
    certificate_inspector = certificate_inspector or TLSCertificateInspector(settings)
    behavioral_simulator = behavioral_simulator or NullBehavioralSimulator()
    reputation_provider = reputation_provider or NullReputationProvider()

    tasks: Dict[str, tuple[Callable, object]] = {
        "ip": (lambda: ip_resolver.resolve(host), IPInfo.unknown()),
        "whois": (lambda: whois_resolver.lookup(host), WhoisInfo.unknown(registrable_domain(host))),
        "certificate": (lambda: certificate_inspector.inspect(normalized), None),
        "behavioral": (lambda: behavioral_simulator.simulate(normalized), None),
        "reputation": (lambda: reputation_provider.lookup(normalized), None),
    }

    results: Dict[str, object] = {}
    executor = ThreadPoolExecutor(max_workers=min(len(tasks), settings.max_workers))
    try:
        futures = {name: executor.submit(fn) for name, (fn, _) in tasks.items()}
        deadline = time.monotonic() + settings.context_timeout
        for name, future in futures.items():
            fallback = tasks[name][1]
            try:
                results[name] = future.result(timeout=max(0.0, deadline - time.monotonic()))
            except FutureTimeout:
                logger.warning("%s lookup for %s timed out after %.1fs", name, host, settings.context_timeout)
                results[name] = fallback
            except Exception:
                logger.warning("%s lookup for %s failed", name, host, exc_info=True)
                results[name] = fallback
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    ip_info: IPInfo = results["ip"]
    return AnalysisInput(
        url=normalized,
        ip_address=ip_info.ip if ip_info.is_known else None,
        hosting_country=ip_info.country if ip_info.country_known else None,
        html_content=html_content,
        certificate_info=results["certificate"],
        whois_info=results["whois"],
        behavioral_signals=results["behavioral"],
        reputation=results["reputation"],
    )
