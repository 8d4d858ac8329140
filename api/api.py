"""Programmatic API entrypoint for the phishing URL checker."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
import logging
from typing import Callable, Dict, Mapping, Optional, Union

from collaborators import (
    BehavioralSimulator,
    CertificateInspector,
    IPResolver,
    ReputationProvider,
    WhoisResolver,
    gather_context,
)
from config import get_settings
from errors import EvaluatorFault
from explanations import explain
from heuristic_scorer import missing_context, score_layers
from layers import EVALUATORS, Evaluator, fault_layer
from models import AnalysisInput, AnalysisResult, FeatureSet, LayerResult
from url_features import extract_features
import rules

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


class AnalysisStage(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    EVALUATING = "evaluating"
    AGGREGATING = "aggregating"
    EXPLAINING = "explaining"
    DONE = "done"
    FAILED = "failed"


STAGE_PROGRESS = {
    AnalysisStage.EXTRACTING: 10,
    AnalysisStage.EVALUATING: 40,
    AnalysisStage.AGGREGATING: 75,
    AnalysisStage.EXPLAINING: 90,
    AnalysisStage.DONE: 100,
}


class AnalysisPipeline:
    """Runs one analysis: extract, evaluate layers concurrently, aggregate, explain.

    ``state`` moves IDLE -> EXTRACTING -> EVALUATING -> AGGREGATING ->
    EXPLAINING -> DONE, or to FAILED when any step raises. The optional
    ``progress`` callback receives ``(stage_name, percent_complete)`` on each
    transition; it has no influence on the result.
    """

    def __init__(
        self,
        progress: Optional[ProgressCallback] = None,
        evaluators: Optional[Mapping[str, Evaluator]] = None,
        max_workers: Optional[int] = None,
    ):
        self.progress = progress
        self.evaluators = dict(evaluators or EVALUATORS)
        self.max_workers = max_workers or get_settings().max_workers
        self.state = AnalysisStage.IDLE

    def _advance(self, stage: AnalysisStage) -> None:
        self.state = stage
        logger.debug("Analysis stage: %s", stage.value)
        if self.progress is not None:
            self.progress(stage.value, STAGE_PROGRESS[stage])

    def _evaluate(self, features: FeatureSet, analysis_input: AnalysisInput) -> Dict[str, LayerResult]:
        layers: Dict[str, LayerResult] = {}
        with ThreadPoolExecutor(max_workers=min(len(self.evaluators), self.max_workers)) as executor:
            futures = {
                name: executor.submit(evaluator, features, analysis_input)
                for name, evaluator in self.evaluators.items()
            }
            for name in rules.LAYER_ORDER:
                if name not in futures:
                    continue
                try:
                    layers[name] = futures[name].result()
                except Exception as exc:
                    fault = EvaluatorFault(name, exc)
                    logger.error("%s", fault, exc_info=exc)
                    layers[name] = fault_layer(name)
        return layers

    def run(self, analysis_input: AnalysisInput) -> AnalysisResult:
        self.state = AnalysisStage.IDLE
        try:
            self._advance(AnalysisStage.EXTRACTING)
            features = extract_features(analysis_input)

            self._advance(AnalysisStage.EVALUATING)
            layers = self._evaluate(features, analysis_input)

            self._advance(AnalysisStage.AGGREGATING)
            warnings = missing_context(analysis_input)
            for warning in warnings:
                logger.info("%s: %s", features.url, warning)
            aggregate = score_layers(layers, features, analysis_input, len(warnings))

            self._advance(AnalysisStage.EXPLAINING)
            red_flags, recommendations = explain(layers, features, analysis_input, aggregate["verdict"])

            result = AnalysisResult(
                url=features.url,
                features=features,
                layers=layers,
                risk_score=aggregate["risk_score"],
                verdict=aggregate["verdict"],
                threat_level=aggregate["threat_level"],
                confidence=aggregate["confidence"],
                red_flags=red_flags,
                recommendations=recommendations,
                missing_context=tuple(w.source for w in warnings),
                ruleset_version=rules.RULESET_VERSION,
            )
        except Exception:
            self.state = AnalysisStage.FAILED
            raise

        self._advance(AnalysisStage.DONE)
        return result


def analyze(
    analysis_input: Union[AnalysisInput, str],
    progress: Optional[ProgressCallback] = None,
) -> AnalysisResult:
    """Score a URL and whatever auxiliary data the caller supplies. No network access."""
    if isinstance(analysis_input, str):
        analysis_input = AnalysisInput(url=analysis_input)
    return AnalysisPipeline(progress=progress).run(analysis_input)


def analyze_url(
    url: str,
    html_content: Optional[str] = None,
    ip_resolver: Optional[IPResolver] = None,
    whois_resolver: Optional[WhoisResolver] = None,
    certificate_inspector: Optional[CertificateInspector] = None,
    behavioral_simulator: Optional[BehavioralSimulator] = None,
    reputation_provider: Optional[ReputationProvider] = None,
    progress: Optional[ProgressCallback] = None,
) -> AnalysisResult:
    """Gather auxiliary context from the collaborators, then run the analysis."""
    analysis_input = gather_context(
        url,
        html_content=html_content,
        ip_resolver=ip_resolver,
        whois_resolver=whois_resolver,
        certificate_inspector=certificate_inspector,
        behavioral_simulator=behavioral_simulator,
        reputation_provider=reputation_provider,
    )
    return analyze(analysis_input, progress=progress)
