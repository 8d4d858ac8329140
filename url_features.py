# url_features.py
# URL feature extraction for phishing detection

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Union
from urllib.parse import urlparse

from errors import InvalidURLError
from html_parser import analyze_html
from models import AnalysisInput, FeatureSet
import rules

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*)://")
_HOST_RE = re.compile(r"[a-z0-9_-]+(\.[a-z0-9_-]+)*")
_IPV4_RE = re.compile(r"\d{1,3}(\.\d{1,3}){3}")
_DYNAMIC_RE = re.compile(rules.DYNAMIC_DOMAIN_PATTERN)
_REDIRECT_RE = re.compile(rules.REDIRECT_PATTERN)


def _contains_ipv4(host: str) -> bool:
    """Return True if host looks like an IPv4 address."""
    return bool(_IPV4_RE.fullmatch(host))


def normalize_url(url: str) -> str:
    """Prefix https:// when no scheme is given; reject non-web schemes."""
    if url is None:
        raise InvalidURLError("", "no URL given")
    url = url.strip()
    if not url:
        raise InvalidURLError(url, "empty URL")
    match = _SCHEME_RE.match(url)
    if match is None:
        url = "https://" + url
    elif match.group(1).lower() not in ("http", "https"):
        raise InvalidURLError(url, f"unsupported scheme '{match.group(1)}'")
    return url


def parse_url(url: str) -> dict:
    """Normalize and parse a URL, raising InvalidURLError when the host is unusable."""
    normalized = normalize_url(url)
    try:
        parsed = urlparse(normalized)
        parsed.port
    except ValueError as exc:
        raise InvalidURLError(normalized, str(exc)) from exc

    host = (parsed.hostname or "").rstrip(".")
    if not host:
        raise InvalidURLError(normalized, "missing host")
    try:
        # internationalized hosts are checked in their punycode form
        host = host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise InvalidURLError(normalized, f"malformed host '{host}'") from exc
    if not _HOST_RE.fullmatch(host):
        raise InvalidURLError(normalized, f"malformed host '{host}'")

    return {
        "normalized": normalized,
        "parsed": parsed,
        "path": parsed.path or "",
        "query": parsed.query or "",
        "host": host,
        "scheme": parsed.scheme or "",
    }


def _label_match(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def is_known_shortener(host: str) -> bool:
    if any(_label_match(host, d) for d in rules.SHORTENER_DOMAINS):
        return True
    if any(token in host for token in rules.SHORTENER_TOKENS):
        return True
    return bool(_IPV4_RE.search(host))


def find_tunnel_service(host: str) -> Optional[str]:
    for service in rules.TUNNEL_SERVICES:
        if service in host:
            return service
    return None


def _is_official_host(host: str, brand: str) -> bool:
    if any(_label_match(host, brand + suffix) for suffix in rules.BRAND_GENERIC_SUFFIXES):
        return True
    return any(_label_match(host, d) for d in rules.BRAND_DOMAINS[brand])


def typosquat_variants(brand: str) -> List[str]:
    """Homoglyph and affix variants of a brand token."""
    variants = []
    for old, new in rules.TYPOSQUAT_SUBSTITUTIONS:
        swapped = brand.replace(old, new, 1)
        # a swap that changes nothing would match the genuine brand
        if swapped != brand:
            variants.append(swapped)
    variants.extend(affix.format(b=brand) for affix in rules.TYPOSQUAT_AFFIXES)
    return variants


def detect_brand_mimic(host: str) -> Optional[str]:
    """Return the brand a host appears to impersonate, if any."""
    for brand in rules.BRAND_DOMAINS:
        if _is_official_host(host, brand):
            continue
        if brand in host:
            return brand
        if any(variant in host for variant in typosquat_variants(brand)):
            return brand
    return None


def find_keywords(url_lower: str) -> List[str]:
    return [kw for kw in rules.SUSPICIOUS_KEYWORDS if kw in url_lower]


def _path_has_special_chars(path: str) -> bool:
    return len(path) > 1 and any(ch in rules.PATH_SPECIAL_CHARS for ch in path)


def extract_features(analysis_input: Union[AnalysisInput, str]) -> FeatureSet:
    """Return the feature set for a URL plus any supplied page HTML."""
    if isinstance(analysis_input, str):
        analysis_input = AnalysisInput(url=analysis_input)

    p = parse_url(analysis_input.url)
    host = p["host"].lower()
    path = p["path"].lower()
    query = p["query"].lower()
    url_lower = p["normalized"].lower()

    has_ip = _contains_ipv4(host)
    tld = host.rsplit(".", 1)[-1] if "." in host and not has_ip else ""
    tunnel = find_tunnel_service(host)
    brand = detect_brand_mimic(host)
    keywords = find_keywords(url_lower)
    target = path + ("?" + query if query else "")

    html: Dict = {}
    if analysis_input.html_content is not None:
        html = analyze_html(analysis_input.html_content, p["normalized"])

    features = FeatureSet(
        url=p["normalized"],
        scheme=p["scheme"],
        host=host,
        tld=tld,
        has_ip_address_host=has_ip,
        suspicious_tld=tld in rules.SUSPICIOUS_TLDS,
        is_known_shortener=is_known_shortener(host),
        subdomain_depth=len(host.split(".")),
        uses_https=p["scheme"] == "https",
        url_length=len(p["normalized"]),
        path_has_special_chars=_path_has_special_chars(path),
        mimics_known_brand=brand is not None,
        suspected_brand=brand,
        has_redirect_param=bool(_REDIRECT_RE.search(target)),
        suspicious_keyword_count=len(keywords),
        keywords_found=tuple(keywords),
        tunnel_service_name=tunnel,
        is_dynamic_domain_pattern=bool(_DYNAMIC_RE.search(host)) or tunnel is not None,
        html_analyzed=bool(html),
        credential_form_count=html.get("credential_form_count", 0),
        has_obfuscated_script=html.get("has_obfuscated_script", False),
        hidden_field_count=html.get("hidden_field_count", 0),
        external_post_targets=tuple(html.get("external_post_targets", ())),
    )
    logger.debug("Extracted features for %s: %s", features.url, features)
    return features
