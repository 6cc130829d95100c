"""Application states, transitions between them and the manager that runs them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

_log = logging.getLogger(__name__)

StateFactory = Callable[[], "State | None"]


class State(ABC):
    """One screen or experiment of the application."""

    @abstractmethod
    def on_enter(self, context: AppContext) -> None:
        """Called when the state becomes active."""

    @abstractmethod
    def on_exit(self, context: AppContext) -> None:
        """Called when the state stops being active."""

    @abstractmethod
    def update(self, context: AppContext, delta_seconds: float) -> StateTransition:
        """Advance one frame and say what should happen next."""


@dataclass(frozen=True)
class StateEntry:
    display_name: str
    factory: StateFactory


@dataclass(frozen=True)
class StateTransition:
    """Request to stay, quit, or switch to a state built by a factory."""

    quit_requested: bool = False
    next_factory: StateFactory | None = None

    @classmethod
    def none(cls) -> StateTransition:
        return cls()

    @classmethod
    def quit(cls) -> StateTransition:
        return cls(quit_requested=True)

    @classmethod
    def to(cls, state_type: type[State]) -> StateTransition:
        """Switch to a fresh instance of the given state class."""
        return cls(next_factory=state_type)

    @classmethod
    def to_factory(cls, factory: StateFactory) -> StateTransition:
        return cls(next_factory=factory)


class StateRegistry:
    """States offered by the selector menu, in registration order."""

    def __init__(self) -> None:
        self._entries: list[StateEntry] = []

    def register_state(self, display_name: str, factory: StateFactory) -> None:
        self._entries.append(StateEntry(display_name, factory))

    def entries(self) -> tuple[StateEntry, ...]:
        return tuple(self._entries)


@dataclass
class AppContext:
    """Shared data handed to every state each frame."""

    window: Any = None
    framebuffer_width: int = 0
    framebuffer_height: int = 0
    time_seconds: float = 0.0
    # Set by the host to force a switch before the active state updates;
    # consumed and cleared by StateManager.
    pending_transition: StateTransition | None = None
    state_registry: StateRegistry = field(default_factory=StateRegistry)


class StateManager:
    """Runs exactly one active state and applies the transitions it requests."""

    def __init__(self) -> None:
        self._active: State | None = None
        self._initialized = False

    @property
    def active_state(self) -> State | None:
        return self._active

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self, context: AppContext, factory: StateFactory) -> None:
        """Enter the first state (or switch to it if already running)."""
        self._initialized = True
        self._switch_to(context, factory)

    def shutdown(self, context: AppContext) -> None:
        self._exit_active(context)
        self._initialized = False

    def update(self, context: AppContext, delta_seconds: float) -> bool:
        """Run one frame; returns False once the application should stop."""
        if not self._initialized or self._active is None:
            return False

        pending = context.pending_transition
        if pending is not None:
            context.pending_transition = None
            if pending.quit_requested:
                self._quit(context)
                return False
            if pending.next_factory is not None:
                self._switch_to(context, pending.next_factory)
                if self._active is None:
                    return False

        transition = self._active.update(context, delta_seconds)

        if transition.quit_requested:
            self._quit(context)
            return False

        if transition.next_factory is not None:
            self._switch_to(context, transition.next_factory)

        return True

    def _quit(self, context: AppContext) -> None:
        self._exit_active(context)
        self._initialized = False

    def _exit_active(self, context: AppContext) -> None:
        if self._active is not None:
            self._active.on_exit(context)
            self._active = None

    def _switch_to(self, context: AppContext, factory: StateFactory) -> None:
        self._exit_active(context)
        self._active = factory()
        if self._active is None:
            _log.error("State factory returned None")
            self._initialized = False
            return
        self._active.on_enter(context)