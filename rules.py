"""Rule table: denylists, per-rule points, layer weights and thresholds.

Everything the scorer treats as tunable lives here so that a change to the
scoring scheme is a change to one versioned table.
"""

RULESET_VERSION = "2024.1"

# --- feature extraction -----------------------------------------------------

SUSPICIOUS_TLDS = (
    "tk", "ml", "ga", "cf", "gq", "bit", "cc", "pw", "top", "click",
    "download", "science", "work", "cricket", "accountant", "review",
    "country", "stream", "racing", "party", "faith", "bid", "win", "date",
    "loan", "site", "website", "online", "agency", "xyz", "zip",
)

# Domain-shaped entries match on a label boundary only: a plain substring
# test for "t.co" also matches "microsoft.com".
SHORTENER_DOMAINS = (
    "bit.ly", "t.co", "goo.gl", "ow.ly", "is.gd", "buff.ly", "cutt.ly",
    "rebrand.ly", "shorturl.at", "tiny.cc", "rb.gy",
)
SHORTENER_TOKENS = ("tinyurl",)

TUNNEL_SERVICES = (
    "trycloudflare.com", "ngrok.io", "ngrok-free.app", "ngrok.app",
    "localtunnel.me", "serveo.net", "pagekite.me", "localhost.run",
    "telebit.cloud", "tunnelto.dev", "bore.pub", "loca.lt", "zrok.io",
    "pinggy.io",
)

DYNAMIC_DOMAIN_PATTERN = r"[a-f0-9]{8,}-[a-f0-9]{4,}|random[0-9]+|temp[0-9]+|[0-9]{8,}"

# brand token -> registrable domains the brand actually operates; any host
# ending in <brand>.com/.net/.org is also treated as the brand's own.
BRAND_DOMAINS = {
    "google": ("google.com", "googleapis.com", "google.co.uk", "gstatic.com"),
    "facebook": ("facebook.com", "fb.com"),
    "amazon": ("amazon.com", "amazon.co.uk", "amazon.de", "amazon.in", "amazonaws.com"),
    "microsoft": ("microsoft.com", "microsoftonline.com", "live.com"),
    "apple": ("apple.com", "icloud.com"),
    "paypal": ("paypal.com", "paypal.me"),
    "netflix": ("netflix.com",),
    "instagram": ("instagram.com",),
    "twitter": ("twitter.com", "x.com"),
    "linkedin": ("linkedin.com",),
    "ebay": ("ebay.com", "ebay.co.uk"),
    "yahoo": ("yahoo.com",),
    "gmail": ("gmail.com",),
    "outlook": ("outlook.com", "live.com", "office.com"),
    "spotify": ("spotify.com",),
    "youtube": ("youtube.com", "youtu.be"),
    "dropbox": ("dropbox.com",),
    "adobe": ("adobe.com",),
    "salesforce": ("salesforce.com", "force.com"),
    "zoom": ("zoom.us", "zoom.com"),
}
BRAND_GENERIC_SUFFIXES = (".com", ".net", ".org")

# single-character homoglyph swaps, applied to the first occurrence
TYPOSQUAT_SUBSTITUTIONS = (("o", "0"), ("e", "3"), ("a", "@"), ("i", "1"), ("l", "1"))
TYPOSQUAT_AFFIXES = ("{b}-", "-{b}", "{b}1", "secure{b}", "{b}secure", "verify{b}", "{b}verify")

SUSPICIOUS_KEYWORDS = (
    "verify", "secure", "account", "update", "confirm", "login", "signin",
    "banking", "suspended", "expired", "urgent", "immediate", "password",
    "billing", "unlock", "validate", "webscr", "wallet", "authenticate",
    "recover",
)
KEYWORD_THRESHOLD = 3

# "redirect" is a plain substring; short parameter names need a boundary
# because "r=" also occurs inside "user=" or "order=".
REDIRECT_PATTERN = r"redirect|(?:^|[/?&;])(?:r|url|goto)="

# "/", "-", "_" and "." occur in almost every path
PATH_SPECIAL_CHARS = "!@#$%^&*()+=[]{};':\"\\|,<>?~`"

LONG_URL = 100
VERY_LONG_URL = 150

OBFUSCATION_MARKERS = ("eval(", "atob(", "fromCharCode")
HEX_ESCAPE_PATTERN = r"\\x[0-9a-fA-F]{2}"
CREDENTIAL_INPUT_TYPES = ("password", "email")

# --- layer rules (points added when the rule fires) -------------------------

INFRASTRUCTURE_POINTS = {
    "tunnel_service": 45,
    "dynamic_domain": 30,
    "ip_host": 35,
    "suspicious_tld": 25,
    "shortener": 20,
    "deep_subdomains": 10,
    "long_url": 10,
    "very_long_url": 15,
    "path_special_chars": 5,
}

TRANSPORT_POINTS = {
    "no_https": 25,
    "bad_certificate": 20,
    "low_trust": 10,
}
LOW_TRUST_SCORE = 40

CONTENT_POINTS = {
    "credential_forms": 25,
    "obfuscated_script": 30,
    "external_post": 20,
    "hidden_fields": 10,
}
HIDDEN_FIELD_LIMIT = 3

BRAND_POINTS = {
    "mimics_brand": 40,
    "lure_keywords": 20,
}

BEHAVIORAL_POINTS = {
    "dynamic_redirect": 20,
    "keylogger": 40,
    "dom_manipulation": 25,
    "screen_capture": 25,
    "malicious_requests": 35,
    "crypto_mining": 30,
    "browser_exploit": 40,
    "redirect_param": 15,
}

REPUTATION_POINTS = {
    "age_under_30_days": 30,
    "age_under_90_days": 20,
    "blacklisted": 50,
    "widely_reported": 15,
    "high_risk_country": 20,
}
WIDELY_REPORTED = 5
HIGH_RISK_COUNTRIES = ("Russia", "China", "Nigeria")

# --- layers -----------------------------------------------------------------

INFRASTRUCTURE = "infrastructure"
TRANSPORT = "transport"
CONTENT = "content"
BRAND = "brand"
BEHAVIORAL = "behavioral"
REPUTATION = "reputation"

# evaluation and display order
LAYER_ORDER = (INFRASTRUCTURE, TRANSPORT, CONTENT, BRAND, BEHAVIORAL, REPUTATION)

LAYER_WEIGHTS = {
    INFRASTRUCTURE: 0.25,
    TRANSPORT: 0.15,
    CONTENT: 0.15,
    BRAND: 0.20,
    BEHAVIORAL: 0.10,
    REPUTATION: 0.15,
}

# (fail_at, warn_at)
LAYER_THRESHOLDS = {
    INFRASTRUCTURE: (35, 15),
    TRANSPORT: (35, 15),
    CONTENT: (40, 20),
    BRAND: (35, 15),
    BEHAVIORAL: (40, 15),
    REPUTATION: (35, 15),
}

# A layer of average weight contributes its points one-for-one.
WEIGHT_SCALE = len(LAYER_WEIGHTS) / sum(LAYER_WEIGHTS.values())

# --- verdicts ---------------------------------------------------------------

VERDICT_CONFIRMED_AT = 70
VERDICT_SUSPICIOUS_AT = 40
THREAT_HIGH_AT = 65
THREAT_MEDIUM_AT = 35

CONFIDENCE_BASE = 80
CONFIDENCE_STRONG_SIGNAL = 15
CONFIDENCE_VALID_TRANSPORT = 5
CONFIDENCE_EXTREME_SCORE = 10
CONFIDENCE_EXTREME_HIGH = 70
CONFIDENCE_EXTREME_LOW = 20
CONFIDENCE_MISSING_CONTEXT = 3
CONFIDENCE_CAP = 99
