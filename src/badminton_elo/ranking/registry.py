"""Named rating systems with a guarded active selection."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from badminton_elo.core.config import DEFAULT_SYSTEM, RatingSystemConfig, builtin_rating_systems
from badminton_elo.core.errors import UnknownSystemError
from badminton_elo.models import MatchOutcome, RatingBatch
from badminton_elo.ranking.processor import MatchRatingProcessor

logger = structlog.get_logger()


@dataclass(frozen=True)
class RatingSystemInfo:
    """Listing entry for a registered rating system."""

    name: str
    description: str
    supports_margin_scaling: bool
    best_for: str


class RatingSystemRegistry:
    """Registry of immutable rating system configs.

    The only mutable state is the name of the active system. Reading it and
    building the processor happen under one lock, so a concurrent ``select``
    never changes the system used by a call already in flight.
    """

    def __init__(
        self,
        systems: Iterable[RatingSystemConfig] | None = None,
        default: str = DEFAULT_SYSTEM,
    ) -> None:
        """Initialize the registry.

        Args:
            systems: Rating systems to register. Defaults to the built-in set.
            default: Name of the initially active system.

        Raises:
            UnknownSystemError: If ``default`` is not among the systems.
        """
        self._lock = threading.Lock()
        self._processors: dict[str, MatchRatingProcessor] = {}
        for config in systems if systems is not None else builtin_rating_systems():
            self._processors[config.name] = MatchRatingProcessor(config)

        default = default.strip().lower()
        if default not in self._processors:
            raise UnknownSystemError(default, self._processors)
        self._current = default

    def register(self, config: RatingSystemConfig, replace: bool = False) -> None:
        """Add a rating system.

        Args:
            config: Config to register under its name.
            replace: Allow overwriting an existing system of the same name.

        Raises:
            ValueError: If the name is taken and ``replace`` is False.
        """
        with self._lock:
            if config.name in self._processors and not replace:
                msg = f"Rating system '{config.name}' is already registered"
                raise ValueError(msg)
            self._processors[config.name] = MatchRatingProcessor(config)
        logger.debug("rating_system_registered", system=config.name)

    def __contains__(self, name: str) -> bool:
        return name.strip().lower() in self._processors

    @property
    def names(self) -> list[str]:
        return list(self._processors)

    def get(self, name: str) -> RatingSystemConfig:
        """Look up a config by name.

        Raises:
            UnknownSystemError: If the name is not registered.
        """
        return self._processor(name).config

    def select(self, name: str) -> None:
        """Make a system the active one.

        Args:
            name: Registered system name.

        Raises:
            UnknownSystemError: If the name is not registered. The previous
                selection stays active.
        """
        key = name.strip().lower()
        with self._lock:
            if key not in self._processors:
                raise UnknownSystemError(name, self._processors)
            previous, self._current = self._current, key
        if previous != key:
            logger.info("rating_system_selected", system=key, previous=previous)

    def current(self) -> str:
        """Name of the active system."""
        with self._lock:
            return self._current

    def processor(self, name: str | None = None) -> MatchRatingProcessor:
        """Processor for a named system, or the active one when name is None."""
        if name is None:
            with self._lock:
                return self._processors[self._current]
        return self._processor(name)

    def process(self, match: MatchOutcome, system: str | None = None) -> RatingBatch:
        """Rate a match with a named system or the active one.

        Args:
            match: Outcome with participant snapshots.
            system: Explicit system name. Pass one when results must not
                depend on the shared selection.

        Returns:
            Rating batch computed by the chosen system.

        Raises:
            UnknownSystemError: If ``system`` is not registered.
            ValidationError: If the match is malformed.
        """
        return self.processor(system).process(match)

    def compare(self, match: MatchOutcome) -> dict[str, RatingBatch]:
        """Rate one match with every registered system.

        The active selection is left untouched.

        Returns:
            Mapping of system name to the batch it would produce.
        """
        with self._lock:
            processors = dict(self._processors)
        return {name: processor.process(match) for name, processor in processors.items()}

    def list_systems(self) -> list[RatingSystemInfo]:
        """Describe every registered system in registration order."""
        with self._lock:
            configs = [processor.config for processor in self._processors.values()]
        return [
            RatingSystemInfo(
                name=config.name,
                description=config.description,
                supports_margin_scaling=config.supports_margin_scaling,
                best_for=config.best_for,
            )
            for config in configs
        ]

    def _processor(self, name: str) -> MatchRatingProcessor:
        key = name.strip().lower()
        with self._lock:
            processor = self._processors.get(key)
            if processor is None:
                raise UnknownSystemError(name, self._processors)
            return processor
