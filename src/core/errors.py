# src/core/errors.py - v1
"""Error taxonomy for the resolution pipeline.

Stages absorb UpstreamUnavailable and UpstreamMalformed locally and report
"no result". InputError is the only failure surfaced to callers as a 400.
"""

from __future__ import annotations


class ReelfinderError(Exception):
    """Base exception for the package."""


class InputError(ReelfinderError):
    """Request is missing a usable query or image."""


class UpstreamUnavailable(ReelfinderError):
    """A collaborator is unconfigured or kept failing after retries."""

    def __init__(self, service: str, reason: str) -> None:
        self.service = service
        self.reason = reason
        super().__init__(f"{service} unavailable: {reason}")


class UpstreamMalformed(ReelfinderError):
    """A collaborator answered with a body that could not be parsed."""

    def __init__(self, service: str, reason: str) -> None:
        self.service = service
        self.reason = reason
        super().__init__(f"{service} returned a malformed response: {reason}")


UPSTREAM_ERRORS = (UpstreamUnavailable, UpstreamMalformed)
