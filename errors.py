"""Error taxonomy for the phishing URL checker."""

from __future__ import annotations


class PhishCheckError(Exception):
    """Base class for errors raised by the checker."""


class InvalidURLError(PhishCheckError, ValueError):
    """The URL cannot be parsed even after scheme normalization."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")


class MissingContextWarning(UserWarning):
    """An auxiliary data source was not supplied; defaults are used instead."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No {source} data supplied; using unknown defaults")


class EvaluatorFault(PhishCheckError):
    """A layer evaluator raised while scoring."""

    def __init__(self, layer: str, cause: BaseException):
        self.layer = layer
        self.cause = cause
        super().__init__(f"Evaluator for layer '{layer}' failed: {cause!r}")
