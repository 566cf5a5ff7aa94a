"""
Custom exceptions for the sentiment runtime.

Backends never let these cross ``analyze``: asset failures turn into a
``False`` from ``initialize`` (and a tier fallback), inference failures into
an error ``SentimentResult``.
"""

from typing import Optional


class SentimentRuntimeError(Exception):
    """Base exception for all sentiment runtime errors."""

    pass


class AssetLoadError(SentimentRuntimeError):
    """
    Model asset could not be loaded.

    Records which loading step failed (config, vocabulary, model) so the
    initialization log names the missing or malformed file.
    """

    def __init__(self, step: str, reason: str, path: Optional[str] = None):
        location = f" ({path})" if path else ""
        super().__init__(f"Failed to load {step}{location}: {reason}")
        self.step = step
        self.reason = reason
        self.path = path


class InferenceError(SentimentRuntimeError):
    """Raised inside a backend when a forward pass cannot produce probabilities."""

    def __init__(self, backend: str, reason: str):
        super().__init__(reason)
        self.backend = backend
        self.reason = reason
