"""
KerbAuth State Machine Base

Table-driven state machine used to track security context handshakes.

A subclass declares its states as an Enum and its transitions as a
mapping (state, event class) -> next state. Every accepted event is kept
in a trace, so a failed login can be explained after the fact. Guards
registered with add_invariant() are checked before a transition is
committed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Tuple, TypeVar

import attrs
import structlog
from returns.result import Failure, Result, Success

from kerbauth.core.exceptions import StateError

S = TypeVar("S", bound=Enum)
E = TypeVar("E")

# (next_state, event) -> bool
InvariantFn = Callable[[Any, Any], bool]


def describe_event(event: Any) -> Dict[str, Any]:
    """Loggable view of an event: public attrs fields, token bytes as lengths."""
    if not attrs.has(type(event)):
        return {"type": type(event).__name__}
    details = {}
    for a in attrs.fields(type(event)):
        if a.name.startswith("_"):
            continue
        value = getattr(event, a.name)
        if isinstance(value, (bytes, bytearray)):
            value = f"<{len(value)} bytes>"
        elif isinstance(value, Enum):
            value = value.name
        details[a.name] = value
    return details


@attrs.define(frozen=True, slots=True)
class Transition(Generic[S]):
    """One accepted event."""

    from_state: S
    event_type: str
    to_state: S
    timestamp: datetime
    event_data: Dict[str, Any] = attrs.Factory(dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_state": self.from_state.name,
            "to_state": self.to_state.name,
            "event_type": self.event_type,
            "at": self.timestamp.isoformat(),
            **self.event_data,
        }


@attrs.define
class StateMachineBase(ABC, Generic[S, E]):
    """
    Base for table-driven state machines.

    Example:
        class DoorMachine(StateMachineBase[Door, object]):
            def initial_state(self):
                return Door.CLOSED

            def transition_table(self):
                return {(Door.CLOSED, Opened): Door.OPEN}
    """

    _state: S = attrs.field(default=None, alias="_state")
    _history: List[Transition[S]] = attrs.field(factory=list, alias="_history")
    _invariants: List[Tuple[str, InvariantFn]] = attrs.field(factory=list, alias="_invariants")
    _logger: Any = attrs.field(factory=lambda: structlog.get_logger(), alias="_logger")

    def __attrs_post_init__(self) -> None:
        if self._state is None:
            self._state = self.initial_state()

    @abstractmethod
    def initial_state(self) -> S:
        ...

    @abstractmethod
    def transition_table(self) -> Dict[Tuple[S, type], S]:
        ...

    @property
    def state(self) -> S:
        return self._state

    def process_event(self, event: E) -> Result[S, str]:
        """
        Apply event to the current state.

        Returns:
            Success(new state), or Failure(reason) when the current state
            does not accept this kind of event. A rejected event leaves the
            machine untouched.

        Raises:
            StateError: If a registered invariant rejects the transition
        """
        current = self._state
        name = type(event).__name__
        target = self.transition_table().get((current, type(event)))
        if target is None:
            self._logger.warning("invalid_transition", current_state=current.name, event_type=name)
            return Failure(f"{current.name} does not accept {name}")

        broken = [label for label, check in self._invariants if not check(target, event)]
        if broken:
            self._logger.error(
                "invariant_violated",
                invariant=broken[0],
                from_state=current.name,
                to_state=target.name,
            )
            raise StateError(f"Invariant '{broken[0]}' violated by {name} in {current.name}")

        self._history.append(
            Transition(
                from_state=current,
                event_type=name,
                to_state=target,
                timestamp=datetime.now(timezone.utc),
                event_data=describe_event(event),
            )
        )
        self._state = target
        self._logger.debug("state_transition", from_state=current.name, to_state=target.name, event_type=name)
        return Success(target)

    def add_invariant(self, name: str, invariant: InvariantFn) -> None:
        """Register a guard (next_state, event) -> bool checked on every transition."""
        self._invariants.append((name, invariant))

    def get_trace(self) -> List[Transition[S]]:
        """Accepted transitions, oldest first."""
        return list(self._history)
