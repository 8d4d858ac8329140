"""Credential-harvesting signals from supplied page HTML."""

from __future__ import annotations

import re
from typing import Dict, List
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from domain_info import registrable_domain
import rules


_HEX_ESCAPE_RE = re.compile(rules.HEX_ESCAPE_PATTERN)


def _host(url: str) -> str:
    return urlparse(url).hostname or ""


def _is_external(base_host: str, url: str) -> bool:
    target_host = _host(url)
    if not target_host:
        return False
    return registrable_domain(target_host) != registrable_domain(base_host)


def _is_obfuscated(script_text: str) -> bool:
    if any(marker in script_text for marker in rules.OBFUSCATION_MARKERS):
        return True
    return bool(_HEX_ESCAPE_RE.search(script_text))


def analyze_html(html: str, page_url: str) -> Dict:
    """
    Returns a dict with keys:
      - credential_form_count (int): password and email inputs
      - has_obfuscated_script (bool)
      - hidden_field_count (int)
      - external_post_targets (list): off-domain form actions, first seen first
    """
    result = {
        "credential_form_count": 0,
        "has_obfuscated_script": False,
        "hidden_field_count": 0,
        "external_post_targets": [],
    }
    if not html:
        return result

    soup = BeautifulSoup(html, "html.parser")
    base_host = _host(page_url)

    for inp in soup.find_all("input"):
        input_type = (inp.get("type") or "").strip().lower()
        if input_type in rules.CREDENTIAL_INPUT_TYPES:
            result["credential_form_count"] += 1
        elif input_type == "hidden":
            result["hidden_field_count"] += 1

    for script in soup.find_all("script"):
        if script.get("src"):
            continue
        if _is_obfuscated(script.string or script.get_text() or ""):
            result["has_obfuscated_script"] = True
            break

    targets: List[str] = []
    for form in soup.find_all("form"):
        action = (form.get("action") or "").strip()
        if not action:
            continue
        action_url = urljoin(page_url, action)
        if _is_external(base_host, action_url) and action_url not in targets:
            targets.append(action_url)
    result["external_post_targets"] = targets

    return result
