"""Test proposal lifecycle state machine."""

import dataclasses

import pytest

from boardmate.assistant.diff import TaskDiff
from boardmate.assistant.proposal import (
    InvalidProposalError,
    Proposal,
    ProposalLifecycle,
    ProposalState,
)


@pytest.fixture
def diff() -> TaskDiff:
    return TaskDiff(deleted_ids=("task-1",), summary="Delete it.")


def test_proposal_state_enum():
    """Test ProposalState enum has all required states."""
    assert ProposalState.PENDING.value == "pending"
    assert ProposalState.CONFIRMED.value == "confirmed"
    assert ProposalState.CANCELLED.value == "cancelled"
    assert ProposalState.SUPERSEDED.value == "superseded"


def test_create_pending(diff):
    """Test a new proposal starts pending with no terminal flags."""
    proposal = ProposalLifecycle.create(diff)

    assert proposal.state == ProposalState.PENDING
    assert proposal.is_pending
    assert not proposal.is_terminal
    assert not proposal.confirmed
    assert not proposal.cancelled
    assert proposal.diff is diff


def test_create_requires_actions():
    """Test a diff without actions cannot become a proposal."""
    with pytest.raises(InvalidProposalError):
        ProposalLifecycle.create(TaskDiff(summary="Just talking."))


def test_can_transition_valid():
    """Test valid transitions are accepted."""
    lifecycle = ProposalLifecycle()

    assert lifecycle.can_transition(ProposalState.PENDING, ProposalState.CONFIRMED)
    assert lifecycle.can_transition(ProposalState.PENDING, ProposalState.CANCELLED)
    assert lifecycle.can_transition(ProposalState.PENDING, ProposalState.SUPERSEDED)


def test_can_transition_invalid():
    """Test terminal states have no way out."""
    lifecycle = ProposalLifecycle()

    for terminal in (ProposalState.CONFIRMED, ProposalState.CANCELLED, ProposalState.SUPERSEDED):
        for target in ProposalState:
            assert not lifecycle.can_transition(terminal, target)


def test_transition_returns_new_proposal(diff):
    """Test transitions replace the proposal by value."""
    lifecycle = ProposalLifecycle()
    proposal = ProposalLifecycle.create(diff)

    confirmed, result = lifecycle.transition(proposal, ProposalState.CONFIRMED)

    assert result.success
    assert result.current_state == ProposalState.CONFIRMED
    assert confirmed.confirmed
    assert confirmed.is_terminal
    assert proposal.state == ProposalState.PENDING
    assert confirmed.diff is proposal.diff


def test_repeated_transition_is_noop(diff):
    """Test confirming twice or cancelling after confirm changes nothing."""
    lifecycle = ProposalLifecycle()
    confirmed, _ = lifecycle.transition(ProposalLifecycle.create(diff), ProposalState.CONFIRMED)

    again, result = lifecycle.transition(confirmed, ProposalState.CONFIRMED)
    cancelled, cancel_result = lifecycle.transition(confirmed, ProposalState.CANCELLED)

    assert not result.success
    assert again is confirmed
    assert not cancel_result.success
    assert cancel_result.current_state == ProposalState.CONFIRMED
    assert cancelled is confirmed


def test_proposal_is_frozen(diff):
    """Test proposals cannot be mutated in place."""
    proposal = Proposal(diff=diff)

    with pytest.raises(dataclasses.FrozenInstanceError):
        proposal.state = ProposalState.CONFIRMED  # type: ignore[misc]


def test_diff_is_frozen(diff):
    """Test diffs cannot be reassigned and hold tuples."""
    with pytest.raises(dataclasses.FrozenInstanceError):
        diff.summary = "changed"  # type: ignore[misc]

    assert isinstance(diff.deleted_ids, tuple)
