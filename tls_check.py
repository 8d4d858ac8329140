"""TLS certificate inspection for HTTPS hosts."""

from __future__ import annotations

from typing import Optional
import logging
import socket
import ssl
from urllib.parse import urlparse
from datetime import datetime, timezone

from config import Settings, get_settings
from models import CertificateInfo

logger = logging.getLogger(__name__)

EXPIRY_WARNING_DAYS = 30


def _parse_cert_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        timestamp = ssl.cert_time_to_seconds(value)
    except ValueError:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _name_field(name: dict, *keys: str) -> str | None:
    for key in keys:
        if name.get(key):
            return name[key]
    return None


def trust_score(is_valid: bool, is_self_signed: bool, days_remaining: int | None) -> int:
    """Coarse 0-100 trust rating for a certificate."""
    if is_self_signed:
        return 0
    if not is_valid:
        return 10
    if days_remaining is not None and days_remaining < EXPIRY_WARNING_DAYS:
        return 60
    return 90


class TLSCertificateInspector:
    """Perform a verified TLS handshake on port 443 and summarize the certificate."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def inspect(self, url: str) -> Optional[CertificateInfo]:
        host = urlparse(url).hostname or ""
        if not host:
            return None

        context = ssl.create_default_context()
        try:
            with socket.create_connection((host, 443), timeout=self.settings.tls_timeout) as sock:
                with context.wrap_socket(sock, server_hostname=host) as tls_sock:
                    cert = tls_sock.getpeercert()
        except ssl.SSLCertVerificationError as exc:
            self_signed = "self signed" in (exc.verify_message or "").lower()
            logger.info("Certificate verification failed for %s: %s", host, exc.verify_message)
            return CertificateInfo(
                is_valid=False,
                issuer="Unknown",
                trust_score=trust_score(False, self_signed, None),
                is_self_signed=self_signed,
            )
        except (OSError, ssl.SSLError) as exc:
            logger.info("TLS handshake with %s failed: %s", host, exc)
            return None

        subject = dict(item[0] for item in cert.get("subject", [])) if cert else {}
        issuer = dict(item[0] for item in cert.get("issuer", [])) if cert else {}

        not_after = _parse_cert_time(cert.get("notAfter") if cert else None)
        days_remaining = None
        if not_after:
            delta = not_after - datetime.now(timezone.utc)
            days_remaining = max(delta.days, 0)

        self_signed = bool(subject) and subject == issuer
        return CertificateInfo(
            is_valid=True,
            issuer=_name_field(issuer, "organizationName", "commonName") or "Unknown",
            expiry_date=not_after.date().isoformat() if not_after else None,
            trust_score=trust_score(True, self_signed, days_remaining),
            is_self_signed=self_signed,
            days_remaining=days_remaining,
        )
