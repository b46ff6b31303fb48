"""Gateway to the certsuite execution service."""

from certweb.gateway.submission import RUN_ENDPOINT, SubmissionGateway, SubmissionResult

__all__ = [
    "RUN_ENDPOINT",
    "SubmissionGateway",
    "SubmissionResult",
]
