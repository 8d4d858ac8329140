"""Red flags and recommendations derived from the layer results."""

from __future__ import annotations

from typing import List, Mapping, Optional, Tuple

from models import AnalysisInput, FeatureSet, LayerResult, Verdict
import rules


NO_RED_FLAGS = "No red flags detected"
STANDARD_PRACTICES = "Maintain standard security practices"

VERDICT_ADVICE = {
    Verdict.CONFIRMED_PHISHING: (
        "IMMEDIATE ACTION: Block domain and warn users",
        "DO NOT enter any personal information or credentials",
        "Contact the legitimate organization directly",
    ),
    Verdict.SUSPICIOUS: (
        "PROCEED WITH EXTREME CAUTION",
        "Do not enter credentials until the site is verified",
    ),
}

# red flags are listed layer by layer in this order
FLAG_ORDER = (
    rules.INFRASTRUCTURE,
    rules.BRAND,
    rules.CONTENT,
    rules.TRANSPORT,
    rules.REPUTATION,
    rules.BEHAVIORAL,
)


def _add_reason(reasons: List[str], reason: str):
    if reason not in reasons:
        reasons.append(reason)


def _infrastructure(features: FeatureSet, context, flags, recs):
    if features.tunnel_service_name:
        _add_reason(flags, f"Tunnel service detected: {features.tunnel_service_name}")
        _add_reason(recs, f"Tunnel service risk: {features.tunnel_service_name}")
    elif features.is_dynamic_domain_pattern:
        _add_reason(flags, "Dynamic/temporary domain pattern")
    if features.has_ip_address_host:
        _add_reason(flags, "IP address used instead of a domain name")
        _add_reason(recs, "This URL uses an IP address instead of a domain name - highly suspicious")
    if features.suspicious_tld:
        _add_reason(flags, f"Suspicious top-level domain: .{features.tld}")
        _add_reason(recs, "Domain uses a top-level domain often abused by scammers")
    if features.is_known_shortener and not features.has_ip_address_host:
        _add_reason(recs, "Expand the shortened link before visiting it")


def _brand(features: FeatureSet, context, flags, recs):
    if features.mimics_known_brand:
        _add_reason(flags, f"Brand impersonation detected ({features.suspected_brand})")
        _add_reason(recs, f"Suspected impersonation of {features.suspected_brand}; go to the official site directly")
    if features.has_suspicious_keywords:
        _add_reason(flags, "Multiple phishing lure keywords in URL")


def _content(features: FeatureSet, context, flags, recs):
    if features.credential_form_count > 0:
        _add_reason(flags, "Credential harvesting forms present")
        _add_reason(recs, "Credential harvesting forms detected")
    if features.has_obfuscated_script:
        _add_reason(flags, "Obfuscated JavaScript detected")
    if features.external_post_targets:
        _add_reason(flags, "External data collection endpoints")
        _add_reason(recs, "Form data is sent to another domain")


def _transport(features: FeatureSet, context, flags, recs):
    cert = context.certificate_info if context else None
    if cert is not None and (not cert.is_valid or cert.is_self_signed):
        _add_reason(flags, "Invalid SSL certificate")
        _add_reason(recs, "Invalid SSL certificate - security risk")
    if not features.uses_https:
        _add_reason(recs, "This site doesn't use HTTPS - avoid entering sensitive data")


def _reputation(features: FeatureSet, context, flags, recs):
    if context is None:
        return
    whois = context.whois_info
    if whois is not None and whois.domain_age_days is not None and whois.domain_age_days < 30:
        _add_reason(flags, "Recently registered domain (< 30 days)")
    reputation = context.reputation
    if reputation is not None:
        if reputation.blacklist_hits > 0:
            _add_reason(flags, f"Listed on {reputation.blacklist_hits} blacklist(s)")
        if reputation.reported_times > rules.WIDELY_REPORTED:
            _add_reason(recs, f"Reported {reputation.reported_times} times in threat databases")
    if context.hosting_country in rules.HIGH_RISK_COUNTRIES:
        _add_reason(flags, f"Hosted in high-risk country: {context.hosting_country}")
        _add_reason(recs, f"Geographic risk: hosted in {context.hosting_country}")


def _behavioral(features: FeatureSet, context, flags, recs):
    signals = context.behavioral_signals if context else None
    if signals is not None:
        if signals.keylogger:
            _add_reason(flags, "Keylogger behavior observed")
        if signals.browser_exploit:
            _add_reason(flags, "Browser exploitation attempts observed")
        if signals.malicious_requests:
            _add_reason(flags, "Requests to known malicious domains")
    if features.has_redirect_param:
        _add_reason(recs, "URL contains redirect mechanisms - check the final destination")


_EXPLAINERS = {
    rules.INFRASTRUCTURE: _infrastructure,
    rules.BRAND: _brand,
    rules.CONTENT: _content,
    rules.TRANSPORT: _transport,
    rules.REPUTATION: _reputation,
    rules.BEHAVIORAL: _behavioral,
}


def explain(
    layers: Mapping[str, LayerResult],
    features: FeatureSet,
    analysis_input: Optional[AnalysisInput],
    verdict: Verdict,
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Return (red_flags, recommendations); neither is ever empty."""
    flags: List[str] = []
    recs: List[str] = []

    for name in FLAG_ORDER:
        layer = layers.get(name)
        # a layer that scored nothing (or was replaced after a fault) has nothing to explain
        if layer is None or layer.score == 0:
            continue
        _EXPLAINERS[name](features, analysis_input, flags, recs)

    recs = list(VERDICT_ADVICE.get(verdict, ())) + recs

    if not flags:
        flags.append(NO_RED_FLAGS)
    if not recs:
        recs.append(STANDARD_PRACTICES)
    return tuple(flags), tuple(recs)
