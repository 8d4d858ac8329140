# heuristic_scorer.py
# Combines layer results into a risk score, verdict, threat level and confidence

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from errors import MissingContextWarning
from layers import clamp_score
from models import AnalysisInput, FeatureSet, LayerResult, ThreatLevel, Verdict
import rules

logger = logging.getLogger(__name__)


def _weight(layer: LayerResult) -> float:
    return max(0.0, min(float(layer.weight), 1.0))


def risk_score(layers: Mapping[str, LayerResult]) -> int:
    """Weighted sum of clamped layer scores, capped at 100."""
    total = 0.0
    for layer in layers.values():
        total += clamp_score(layer.score) * _weight(layer) * rules.WEIGHT_SCALE
    return clamp_score(total)


def verdict_for(score: int) -> Verdict:
    if score >= rules.VERDICT_CONFIRMED_AT:
        return Verdict.CONFIRMED_PHISHING
    if score >= rules.VERDICT_SUSPICIOUS_AT:
        return Verdict.SUSPICIOUS
    return Verdict.LEGITIMATE


def threat_level_for(score: int) -> ThreatLevel:
    if score >= rules.THREAT_HIGH_AT:
        return ThreatLevel.HIGH
    if score >= rules.THREAT_MEDIUM_AT:
        return ThreatLevel.MEDIUM
    return ThreatLevel.LOW


def missing_context(analysis_input: Optional[AnalysisInput]) -> List[MissingContextWarning]:
    """One warning per auxiliary source the caller did not supply."""
    if analysis_input is None:
        sources = ["ip/geo", "whois", "html", "certificate", "behavioral", "reputation"]
        return [MissingContextWarning(s) for s in sources]

    warnings: List[MissingContextWarning] = []
    if analysis_input.ip_address is None and analysis_input.hosting_country is None:
        warnings.append(MissingContextWarning("ip/geo"))
    if analysis_input.whois_info is None or not analysis_input.whois_info.is_known:
        warnings.append(MissingContextWarning("whois"))
    if analysis_input.html_content is None:
        warnings.append(MissingContextWarning("html"))
    if analysis_input.certificate_info is None:
        warnings.append(MissingContextWarning("certificate"))
    if analysis_input.behavioral_signals is None:
        warnings.append(MissingContextWarning("behavioral"))
    if analysis_input.reputation is None:
        warnings.append(MissingContextWarning("reputation"))
    return warnings


def confidence_for(
    score: int,
    features: FeatureSet,
    analysis_input: Optional[AnalysisInput] = None,
    missing_count: int = 0,
) -> int:
    confidence = rules.CONFIDENCE_BASE
    if features.tunnel_service_name or features.mimics_known_brand:
        confidence += rules.CONFIDENCE_STRONG_SIGNAL
    cert = analysis_input.certificate_info if analysis_input else None
    if features.uses_https and cert is not None and cert.is_valid and not cert.is_self_signed:
        confidence += rules.CONFIDENCE_VALID_TRANSPORT
    if score > rules.CONFIDENCE_EXTREME_HIGH or score < rules.CONFIDENCE_EXTREME_LOW:
        confidence += rules.CONFIDENCE_EXTREME_SCORE
    confidence -= missing_count * rules.CONFIDENCE_MISSING_CONTEXT
    return max(0, min(confidence, rules.CONFIDENCE_CAP))


def score_layers(
    layers: Mapping[str, LayerResult],
    features: FeatureSet,
    analysis_input: Optional[AnalysisInput] = None,
    missing_count: int = 0,
) -> Dict:
    """Aggregate layer results into the final score and classification."""
    score = risk_score(layers)
    verdict = verdict_for(score)
    threat_level = threat_level_for(score)
    confidence = confidence_for(score, features, analysis_input, missing_count)
    logger.debug(
        "Aggregated %d layers for %s: score=%d verdict=%s confidence=%d",
        len(layers), features.url, score, verdict.value, confidence,
    )
    return {
        "risk_score": score,
        "verdict": verdict,
        "threat_level": threat_level,
        "confidence": confidence,
    }
