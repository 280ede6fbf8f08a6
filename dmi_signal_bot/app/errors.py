"""Exception hierarchy for signal processing."""

from __future__ import annotations

from collections.abc import Sequence


class SignalBotError(Exception):
    """Base exception for the signal bot."""


class ConfigError(SignalBotError):
    """Raised when the configuration file cannot be read or validated."""


class SignalRejected(SignalBotError):
    """A single signal could not be turned into a decision record."""


class MalformedSignal(SignalRejected):
    """Webhook payload is missing required fields."""

    def __init__(self, missing: Sequence[str], required: Sequence[str]) -> None:
        self.missing = list(missing)
        self.required = list(required)
        super().__init__(f"Missing required signal parameters: {', '.join(self.missing)}")


class InvalidSignal(SignalRejected):
    """Signal is complete but fails threshold evaluation."""

    def __init__(self, explanation: str) -> None:
        self.explanation = explanation
        super().__init__(explanation)


class PriceUnavailable(SignalRejected):
    """Reference price lookup failed or returned unusable data."""


class PersistenceFailure(SignalRejected):
    """Storage rejected the decision record."""
