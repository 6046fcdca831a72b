"""Proposal lifecycle state machine."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from boardmate.assistant.diff import TaskDiff

logger = logging.getLogger(__name__)


class ProposalState(str, Enum):
    """Proposal lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class Proposal:
    """
    A diff awaiting the user's decision.

    Immutable: a transition produces a new Proposal. The diff is the exact
    one shown to the user and the exact one applied on confirm.
    """

    diff: TaskDiff
    state: ProposalState = ProposalState.PENDING
    updated_at: str = ""

    @property
    def is_pending(self) -> bool:
        return self.state == ProposalState.PENDING

    @property
    def is_terminal(self) -> bool:
        return not ProposalLifecycle.VALID_TRANSITIONS[self.state]

    # Compatibility with the wire flags of proposal messages
    @property
    def confirmed(self) -> bool:
        return self.state == ProposalState.CONFIRMED

    @property
    def cancelled(self) -> bool:
        return self.state == ProposalState.CANCELLED


@dataclass
class TransitionResult:
    """Result of a proposal transition."""

    success: bool
    current_state: Optional[ProposalState]
    message: str


class InvalidProposalError(Exception):
    """Raised when a proposal would be created from a diff with no actions."""


class ProposalLifecycle:
    """Validates and performs proposal state transitions."""

    VALID_TRANSITIONS: dict[ProposalState, set[ProposalState]] = {
        ProposalState.PENDING: {
            ProposalState.CONFIRMED,
            ProposalState.CANCELLED,
            ProposalState.SUPERSEDED,
        },
        ProposalState.CONFIRMED: set(),
        ProposalState.CANCELLED: set(),
        ProposalState.SUPERSEDED: set(),
    }

    @staticmethod
    def create(diff: TaskDiff) -> Proposal:
        """
        Open a pending proposal for a diff.

        Args:
            diff: Sanitized diff with at least one action

        Returns:
            Pending Proposal

        Raises:
            InvalidProposalError: If the diff has no actions
        """
        if not diff.has_actions:
            raise InvalidProposalError("A diff without actions cannot become a proposal")
        return Proposal(
            diff=diff,
            state=ProposalState.PENDING,
            updated_at=datetime.now(timezone.utc).isoformat(),
        )

    def can_transition(self, from_state: ProposalState, to_state: ProposalState) -> bool:
        """Check if a state transition is valid.

        Args:
            from_state: Current state
            to_state: Desired next state

        Returns:
            True if transition is valid, False otherwise
        """
        return to_state in self.VALID_TRANSITIONS.get(from_state, set())

    def transition(
        self,
        proposal: Proposal,
        new_state: ProposalState,
    ) -> tuple[Proposal, TransitionResult]:
        """Move a proposal to a new state.

        Refused transitions leave the proposal untouched, which makes repeated
        confirm/cancel calls no-ops.

        Args:
            proposal: Current proposal
            new_state: Target state

        Returns:
            (resulting proposal, TransitionResult)
        """
        current = proposal.state
        if not self.can_transition(current, new_state):
            message = f"Proposal is already {current.value}; cannot move to {new_state.value}"
            logger.debug(message)
            return proposal, TransitionResult(
                success=False,
                current_state=current,
                message=message,
            )

        updated = replace(
            proposal,
            state=new_state,
            updated_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(f"Proposal transitioned: {current.value} -> {new_state.value}")
        return updated, TransitionResult(
            success=True,
            current_state=new_state,
            message=f"Proposal {new_state.value}",
        )
