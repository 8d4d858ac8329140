"""IP, geolocation and WHOIS (RDAP) lookups feeding the reputation layer."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import socket
from typing import Callable, Dict, List, Optional

import requests
import tldextract

from config import Settings, get_settings
from models import IPInfo, WhoisInfo, UNKNOWN

logger = logging.getLogger(__name__)


def _split_labels(host: str) -> List[str]:
    return [label for label in host.split(".") if label]


def _is_ipv4(host: str) -> bool:
    labels = _split_labels(host)
    return len(labels) == 4 and all(label.isdigit() for label in labels)


# bundled public suffix snapshot only; lookups never fetch the list at runtime
_SUFFIXES = tldextract.TLDExtract(suffix_list_urls=())


def registrable_domain(host: str) -> str:
    """Registered domain under the public suffix list, e.g. example.co.uk."""
    host = host.lower().rstrip(".")
    return _SUFFIXES(host).registered_domain or host


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DNSGeoResolver:
    """Resolve a host to its first IPv4 address and geolocate it via ipapi.co."""

    GEO_URL = "https://ipapi.co/{ip}/json/"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _resolve_address(self, host: str) -> Optional[str]:
        if _is_ipv4(host):
            return host
        try:
            infos = socket.getaddrinfo(host, None, socket.AF_INET)
        except OSError as exc:
            logger.info("DNS resolution failed for %s: %s", host, exc)
            return None
        for info in infos:
            return info[4][0]
        return None

    def _geolocate(self, ip: str) -> Optional[Dict]:
        try:
            r = requests.get(
                self.GEO_URL.format(ip=ip),
                timeout=self.settings.request_timeout,
                headers={"User-Agent": self.settings.user_agent},
            )
            if r.status_code != 200:
                logger.info("Geolocation lookup for %s returned HTTP %s", ip, r.status_code)
                return None
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.info("Geolocation lookup failed for %s: %s", ip, exc)
            return None
        if not isinstance(data, dict) or data.get("error"):
            return None
        return data

    def resolve(self, host: str) -> IPInfo:
        ip = self._resolve_address(host)
        if ip is None:
            return IPInfo.unknown()

        geo = self._geolocate(ip)
        if geo is None:
            return IPInfo(ip=ip, country="Unknown (DNS only)")

        return IPInfo(
            ip=ip,
            country=geo.get("country_name") or UNKNOWN,
            region=geo.get("region") or "Unknown Region",
            city=geo.get("city") or "Unknown City",
            org=geo.get("org") or "Unknown Organization",
            isp=geo.get("org") or "Unknown ISP",
        )


def _vcard_field(entity: Dict, name: str) -> Optional[str]:
    vcard = entity.get("vcardArray")
    if not isinstance(vcard, list) or len(vcard) < 2:
        return None
    for item in vcard[1]:
        if isinstance(item, list) and len(item) >= 4 and item[0] == name:
            value = item[3]
            if isinstance(value, list):
                # adr values are structured; the country name is the last part
                value = value[-1] if value else None
            return str(value) if value else None
    return None


def _entity_with_role(data: Dict, role: str) -> Optional[Dict]:
    for entity in data.get("entities", []) or []:
        if role in (entity.get("roles") or []):
            return entity
    return None


class RDAPWhoisResolver:
    """WHOIS-equivalent registration data from the public RDAP bootstrap service."""

    RDAP_URL = "https://rdap.org/domain/{domain}"

    def __init__(self, settings: Optional[Settings] = None, now: Callable[[], datetime] = _utc_now):
        self.settings = settings or get_settings()
        self.now = now

    def lookup(self, host: str) -> WhoisInfo:
        domain = registrable_domain(host)
        if not domain or _is_ipv4(host):
            return WhoisInfo.unknown(domain)

        try:
            r = requests.get(
                self.RDAP_URL.format(domain=domain),
                timeout=self.settings.whois_timeout,
                headers={"User-Agent": self.settings.user_agent, "Accept": "application/rdap+json"},
            )
            if r.status_code != 200:
                logger.info("RDAP lookup for %s returned HTTP %s", domain, r.status_code)
                return WhoisInfo.unknown(domain)
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.info("RDAP lookup failed for %s: %s", domain, exc)
            return WhoisInfo.unknown(domain)

        return self._parse(domain, data)

    def _parse(self, domain: str, data: Dict) -> WhoisInfo:
        created = expires = None
        for event in data.get("events", []) or []:
            action = event.get("eventAction")
            if action == "registration":
                created = _parse_date(event.get("eventDate"))
            elif action == "expiration":
                expires = _parse_date(event.get("eventDate"))

        registrar = _entity_with_role(data, "registrar")
        registrant = _entity_with_role(data, "registrant")
        name_servers = tuple(
            ns.get("ldhName", "").lower()
            for ns in data.get("nameservers", []) or []
            if ns.get("ldhName")
        )

        age_days = None
        if created is not None:
            age_days = max((self.now() - created).days, 0)

        return WhoisInfo(
            domain=domain,
            registrar=(_vcard_field(registrar, "fn") if registrar else None) or UNKNOWN,
            registration_date=created.date().isoformat() if created else UNKNOWN,
            expiration_date=expires.date().isoformat() if expires else UNKNOWN,
            name_servers=name_servers,
            registrant_country=(_vcard_field(registrant, "adr") if registrant else None) or UNKNOWN,
            registrant_organization=(_vcard_field(registrant, "org") if registrant else None) or "Private",
            domain_age_days=age_days,
        )
