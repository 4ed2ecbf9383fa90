"""
Security context handshake state machine.

    NOT_STARTED --ContextCreated--> IN_PROGRESS
    IN_PROGRESS --TokenExchanged--> IN_PROGRESS
    IN_PROGRESS --ContextEstablished--> ESTABLISHED
    NOT_STARTED | IN_PROGRESS --NegotiationFailed--> FAILED

ESTABLISHED and FAILED are terminal: any further event is rejected.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import attrs

from kerbauth.core.state_machine import StateMachineBase
from kerbauth.core.types import HandshakeState


# =============================================================================
# EVENTS
# =============================================================================


@attrs.define(frozen=True)
class ContextCreated:
    peer_name: str


@attrs.define(frozen=True)
class TokenExchanged:
    in_length: int
    out_length: Optional[int]


@attrs.define(frozen=True)
class ContextEstablished:
    in_length: int
    out_length: Optional[int]


@attrs.define(frozen=True)
class NegotiationFailed:
    reason: str


# =============================================================================
# STATE MACHINE
# =============================================================================


@attrs.define
class HandshakeStateMachine(StateMachineBase[HandshakeState, object]):
    """
    Tracks the handshake of one authentication context.

    Invariant: the context is created once, so ContextCreated can only be
    accepted in NOT_STARTED.
    """

    def __attrs_post_init__(self) -> None:
        super().__attrs_post_init__()
        self.add_invariant(
            "context_created_once",
            lambda next_state, event: not isinstance(event, ContextCreated)
            or (self.rounds == 0 and self.state is HandshakeState.NOT_STARTED),
        )

    def initial_state(self) -> HandshakeState:
        return HandshakeState.NOT_STARTED

    def transition_table(self) -> Dict[Tuple[HandshakeState, type], HandshakeState]:
        return {
            (HandshakeState.NOT_STARTED, ContextCreated): HandshakeState.IN_PROGRESS,
            (HandshakeState.NOT_STARTED, NegotiationFailed): HandshakeState.FAILED,
            (HandshakeState.IN_PROGRESS, TokenExchanged): HandshakeState.IN_PROGRESS,
            (HandshakeState.IN_PROGRESS, ContextEstablished): HandshakeState.ESTABLISHED,
            (HandshakeState.IN_PROGRESS, NegotiationFailed): HandshakeState.FAILED,
        }

    @property
    def rounds(self) -> int:
        """Token exchanges performed so far."""
        return sum(
            1 for t in self._history
            if t.event_type in (TokenExchanged.__name__, ContextEstablished.__name__)
        )
