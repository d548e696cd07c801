from __future__ import annotations


class ConfigurationError(ValueError):
    """Table cannot start: bad config or fewer than two seats able to pay the ante."""


class InvalidAction(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


class ProviderFailure(Exception):
    """A decision provider raised, timed out or answered with garbage."""

    def __init__(self, seat: int, reason: str) -> None:
        super().__init__(f"seat {seat}: {reason}")
        self.seat = seat
        self.reason = reason
