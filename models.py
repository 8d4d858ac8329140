"""Data records shared by the extractor, the layer evaluators and the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from rules import KEYWORD_THRESHOLD, VERDICT_SUSPICIOUS_AT


UNKNOWN = "Unknown"
UNKNOWN_API = "Unknown (API Unavailable)"


class LayerStatus(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class Verdict(str, Enum):
    LEGITIMATE = "LEGITIMATE"
    SUSPICIOUS = "SUSPICIOUS"
    CONFIRMED_PHISHING = "CONFIRMED_PHISHING"


class ThreatLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class IPInfo:
    ip: str
    country: str = UNKNOWN
    region: str = "Unknown Region"
    city: str = "Unknown City"
    org: str = "Unknown Organization"
    isp: str = "Unknown ISP"

    @classmethod
    def unknown(cls) -> "IPInfo":
        """Placeholder returned when resolution or geolocation fails."""
        return cls(ip=UNKNOWN)

    @property
    def is_known(self) -> bool:
        return self.ip != UNKNOWN

    @property
    def country_known(self) -> bool:
        return bool(self.country) and not self.country.startswith(UNKNOWN)


@dataclass(frozen=True)
class WhoisInfo:
    domain: str
    registrar: str = UNKNOWN_API
    registration_date: str = UNKNOWN_API
    expiration_date: str = UNKNOWN_API
    name_servers: Tuple[str, ...] = ()
    registrant_country: str = UNKNOWN_API
    registrant_organization: str = UNKNOWN_API
    domain_age_days: Optional[int] = None

    @classmethod
    def unknown(cls, domain: str) -> "WhoisInfo":
        """Placeholder returned when every WHOIS source fails."""
        return cls(domain=domain)

    @property
    def is_known(self) -> bool:
        return self.domain_age_days is not None


@dataclass(frozen=True)
class CertificateInfo:
    is_valid: bool
    issuer: str = "None"
    expiry_date: Optional[str] = None
    trust_score: int = 0
    is_self_signed: bool = False
    days_remaining: Optional[int] = None


@dataclass(frozen=True)
class BehavioralSignals:
    """Pre-computed findings of an external behavioral simulation / sandbox run."""

    dynamic_redirect: bool = False
    keylogger: bool = False
    dom_manipulation: bool = False
    screen_capture: bool = False
    malicious_requests: bool = False
    crypto_mining: bool = False
    browser_exploit: bool = False


@dataclass(frozen=True)
class ReputationInfo:
    blacklist_hits: int = 0
    reported_times: int = 0
    sources: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisInput:
    url: str
    ip_address: Optional[str] = None
    hosting_country: Optional[str] = None
    html_content: Optional[str] = None
    certificate_info: Optional[CertificateInfo] = None
    whois_info: Optional[WhoisInfo] = None
    behavioral_signals: Optional[BehavioralSignals] = None
    reputation: Optional[ReputationInfo] = None


@dataclass(frozen=True)
class FeatureSet:
    url: str
    scheme: str
    host: str
    tld: str
    has_ip_address_host: bool
    suspicious_tld: bool
    is_known_shortener: bool
    subdomain_depth: int
    uses_https: bool
    url_length: int
    path_has_special_chars: bool
    mimics_known_brand: bool
    suspected_brand: Optional[str]
    has_redirect_param: bool
    suspicious_keyword_count: int
    keywords_found: Tuple[str, ...]
    tunnel_service_name: Optional[str]
    is_dynamic_domain_pattern: bool
    html_analyzed: bool = False
    credential_form_count: int = 0
    has_obfuscated_script: bool = False
    hidden_field_count: int = 0
    external_post_targets: Tuple[str, ...] = ()

    @property
    def has_subdomains(self) -> bool:
        return self.subdomain_depth > 3

    @property
    def has_suspicious_keywords(self) -> bool:
        return self.suspicious_keyword_count >= KEYWORD_THRESHOLD


@dataclass(frozen=True)
class LayerResult:
    name: str
    score: int
    status: LayerStatus
    findings: Tuple[str, ...]
    weight: float

    def to_dict(self) -> Dict:
        return {
            "score": self.score,
            "status": self.status.value,
            "findings": list(self.findings),
            "weight": self.weight,
        }


@dataclass(frozen=True)
class AnalysisResult:
    url: str
    features: FeatureSet
    layers: Mapping[str, LayerResult]
    risk_score: int
    verdict: Verdict
    threat_level: ThreatLevel
    confidence: int
    red_flags: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    missing_context: Tuple[str, ...] = ()
    ruleset_version: str = ""
    is_phishing: bool = field(init=False)

    def __post_init__(self):
        if not isinstance(self.layers, MappingProxyType):
            object.__setattr__(self, "layers", MappingProxyType(dict(self.layers)))
        object.__setattr__(self, "is_phishing", self.risk_score >= VERDICT_SUSPICIOUS_AT)

    def to_dict(self) -> Dict:
        """JSON-ready representation."""
        features = {
            name: (list(value) if isinstance(value, tuple) else value)
            for name, value in self.features.__dict__.items()
        }
        features["has_subdomains"] = self.features.has_subdomains
        features["has_suspicious_keywords"] = self.features.has_suspicious_keywords
        return {
            "url": self.url,
            "is_phishing": self.is_phishing,
            "risk_score": self.risk_score,
            "verdict": self.verdict.value,
            "threat_level": self.threat_level.value,
            "confidence": self.confidence,
            "red_flags": list(self.red_flags),
            "recommendations": list(self.recommendations),
            "layers": {name: layer.to_dict() for name, layer in self.layers.items()},
            "features": features,
            "missing_context": list(self.missing_context),
            "ruleset_version": self.ruleset_version,
        }
