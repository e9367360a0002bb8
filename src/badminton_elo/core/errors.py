"""Exception hierarchy for the rating engine."""

from __future__ import annotations

from collections.abc import Iterable


class RatingEngineError(Exception):
    """Base exception for rating engine errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Rating Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg

    def __str__(self) -> str:
        return self._format_message()


class ValidationError(RatingEngineError):
    """Error when a match outcome is malformed.

    Raised before any rating is computed, so a failed match never
    contributes partial updates.
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {reason}")


class UnknownSystemError(RatingEngineError, KeyError):
    """Error when a rating system name is not registered."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        self.name = name
        self.available = sorted(available)
        suggestion = None
        if self.available:
            suggestion = f"Choose one of: {', '.join(self.available)}."
        super().__init__(f"Unknown rating system '{name}'", suggestion)


class ParticipantComputationError(RatingEngineError):
    """Error raised while rating a single participant.

    The match processor catches this per participant and turns it into a
    zero-change update carrying the error text.
    """

    def __init__(self, participant_id: str, reason: str) -> None:
        self.participant_id = participant_id
        self.reason = reason
        super().__init__(f"Could not rate participant '{participant_id}': {reason}")


class RosterResolutionError(RatingEngineError):
    """Error when a historical match references participants missing from the roster."""

    def __init__(self, match_id: str, missing: Iterable[str]) -> None:
        self.match_id = match_id
        self.missing = list(missing)
        super().__init__(
            f"Match '{match_id}' references unresolved participants: {', '.join(self.missing)}",
            "Add the participants to the roster or drop the match from the log.",
        )
