"""Independent risk layers.

Each evaluator takes the extracted FeatureSet plus the raw AnalysisInput and
returns one LayerResult. Evaluators share no state and may run in any order.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from models import AnalysisInput, FeatureSet, LayerResult, LayerStatus
import rules


Evaluator = Callable[[FeatureSet, Optional[AnalysisInput]], LayerResult]


def clamp_score(score: float) -> int:
    return int(max(0, min(100, round(score))))


def layer_status(name: str, score: int) -> LayerStatus:
    fail_at, warn_at = rules.LAYER_THRESHOLDS[name]
    if score >= fail_at:
        return LayerStatus.FAIL
    if score >= warn_at:
        return LayerStatus.WARN
    return LayerStatus.PASS


def _layer(name: str, score: float, findings: List[str], clean: str) -> LayerResult:
    score = clamp_score(score)
    return LayerResult(
        name=name,
        score=score,
        status=layer_status(name, score),
        findings=tuple(findings) if findings else (clean,),
        weight=rules.LAYER_WEIGHTS[name],
    )


def fault_layer(name: str) -> LayerResult:
    """Neutral stand-in for a layer whose evaluator raised."""
    return _layer(name, 0, ["Layer evaluation failed; scored as clean"], "")


def evaluate_infrastructure(features: FeatureSet, context: Optional[AnalysisInput] = None) -> LayerResult:
    pts = rules.INFRASTRUCTURE_POINTS
    score = 0
    findings: List[str] = []

    if features.tunnel_service_name:
        score += pts["tunnel_service"]
        findings.append(f"CRITICAL: Tunnel service detected ({features.tunnel_service_name})")
    if features.is_dynamic_domain_pattern:
        score += pts["dynamic_domain"]
        findings.append("Dynamic/temporary domain pattern detected")
    if features.has_ip_address_host:
        score += pts["ip_host"]
        findings.append("URL uses an IP address instead of a domain name")
    if features.suspicious_tld:
        score += pts["suspicious_tld"]
        findings.append(f"Suspicious top-level domain (.{features.tld})")
    # dotted-quad hosts are already scored above
    if features.is_known_shortener and not features.has_ip_address_host:
        score += pts["shortener"]
        findings.append("URL shortener hides the real destination")
    if features.has_subdomains and not features.has_ip_address_host:
        score += pts["deep_subdomains"]
        findings.append(f"Deeply nested subdomains ({features.subdomain_depth} labels)")
    if features.url_length > rules.VERY_LONG_URL:
        score += pts["very_long_url"]
        findings.append(f"Unusually long URL ({features.url_length} characters)")
    elif features.url_length > rules.LONG_URL:
        score += pts["long_url"]
        findings.append(f"Long URL ({features.url_length} characters)")
    if features.path_has_special_chars:
        score += pts["path_special_chars"]
        findings.append("Suspicious characters in URL path")

    return _layer(rules.INFRASTRUCTURE, score, findings, "No infrastructure red flags detected")


def evaluate_transport(features: FeatureSet, context: Optional[AnalysisInput] = None) -> LayerResult:
    pts = rules.TRANSPORT_POINTS
    score = 0
    findings: List[str] = []
    cert = context.certificate_info if context else None

    if not features.uses_https:
        score += pts["no_https"]
        findings.append("No HTTPS encryption")
    if cert is not None:
        if not cert.is_valid or cert.is_self_signed:
            score += pts["bad_certificate"]
            kind = "Self-signed" if cert.is_self_signed else "Invalid"
            findings.append(f"{kind} SSL certificate (issuer: {cert.issuer})")
        if cert.trust_score < rules.LOW_TRUST_SCORE:
            score += pts["low_trust"]
            findings.append(f"Low certificate trust score ({cert.trust_score}/100)")

    if cert is None:
        clean = "HTTPS in use; certificate not inspected"
    else:
        clean = f"Valid HTTPS certificate issued by {cert.issuer}"
    return _layer(rules.TRANSPORT, score, findings, clean)


def evaluate_content(features: FeatureSet, context: Optional[AnalysisInput] = None) -> LayerResult:
    if not features.html_analyzed:
        return _layer(rules.CONTENT, 0, [], "Page HTML not supplied; content not inspected")

    pts = rules.CONTENT_POINTS
    score = 0
    findings: List[str] = []

    if features.credential_form_count > 0:
        score += pts["credential_forms"]
        findings.append(f"{features.credential_form_count} credential input field(s) detected")
    if features.has_obfuscated_script:
        score += pts["obfuscated_script"]
        findings.append("Obfuscated JavaScript code detected")
    if features.external_post_targets:
        score += pts["external_post"]
        findings.append(f"Form posts to external targets: {', '.join(features.external_post_targets)}")
    if features.hidden_field_count > rules.HIDDEN_FIELD_LIMIT:
        score += pts["hidden_fields"]
        findings.append(f"{features.hidden_field_count} hidden form fields detected")

    return _layer(rules.CONTENT, score, findings, "No malicious HTML patterns detected")


def evaluate_brand(features: FeatureSet, context: Optional[AnalysisInput] = None) -> LayerResult:
    pts = rules.BRAND_POINTS
    score = 0
    findings: List[str] = []

    if features.mimics_known_brand:
        score += pts["mimics_brand"]
        findings.append(f"CRITICAL: Domain imitates the '{features.suspected_brand}' brand")
    if features.has_suspicious_keywords:
        score += pts["lure_keywords"]
        findings.append(f"Lure keywords in URL: {', '.join(features.keywords_found)}")

    return _layer(rules.BRAND, score, findings, "No brand impersonation detected")


_BEHAVIOR_FINDINGS = (
    ("dynamic_redirect", "Dynamic redirects triggered by user interaction"),
    ("keylogger", "Potential keylogger JavaScript detected"),
    ("dom_manipulation", "Suspicious DOM manipulation detected"),
    ("screen_capture", "Screen capture JavaScript patterns detected"),
    ("malicious_requests", "Requests to known malicious domains detected"),
    ("crypto_mining", "Cryptocurrency mining scripts detected"),
    ("browser_exploit", "Browser exploitation attempts detected"),
)


def evaluate_behavioral(features: FeatureSet, context: Optional[AnalysisInput] = None) -> LayerResult:
    pts = rules.BEHAVIORAL_POINTS
    score = 0
    findings: List[str] = []
    signals = context.behavioral_signals if context else None

    if signals is not None:
        for signal, message in _BEHAVIOR_FINDINGS:
            if getattr(signals, signal):
                score += pts[signal]
                findings.append(message)
    if features.has_redirect_param:
        score += pts["redirect_param"]
        findings.append("URL contains a redirect parameter; check the final destination")

    return _layer(rules.BEHAVIORAL, score, findings, "No suspicious behavioral patterns detected")


def evaluate_reputation(features: FeatureSet, context: Optional[AnalysisInput] = None) -> LayerResult:
    pts = rules.REPUTATION_POINTS
    score = 0
    findings: List[str] = []
    whois = context.whois_info if context else None
    reputation = context.reputation if context else None
    country = context.hosting_country if context else None

    age = whois.domain_age_days if whois is not None else None
    if age is not None:
        if age < 30:
            score += pts["age_under_30_days"]
            findings.append(f"Recently registered domain ({age} days old)")
        elif age < 90:
            score += pts["age_under_90_days"]
            findings.append(f"Young domain ({age} days old)")
    if reputation is not None:
        if reputation.blacklist_hits > 0:
            score += pts["blacklisted"]
            listed_by = f" ({', '.join(reputation.sources)})" if reputation.sources else ""
            findings.append(f"Listed on {reputation.blacklist_hits} blacklist(s){listed_by}")
        if reputation.reported_times > rules.WIDELY_REPORTED:
            score += pts["widely_reported"]
            findings.append(f"Reported {reputation.reported_times} times in threat databases")
    if country in rules.HIGH_RISK_COUNTRIES:
        score += pts["high_risk_country"]
        findings.append(f"Hosted in high-risk country: {country}")

    return _layer(rules.REPUTATION, score, findings, "No reputation concerns found")


EVALUATORS: Dict[str, Evaluator] = {
    rules.INFRASTRUCTURE: evaluate_infrastructure,
    rules.TRANSPORT: evaluate_transport,
    rules.CONTENT: evaluate_content,
    rules.BRAND: evaluate_brand,
    rules.BEHAVIORAL: evaluate_behavioral,
    rules.REPUTATION: evaluate_reputation,
}
