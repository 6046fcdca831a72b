"""Conversation log and command orchestration."""

import itertools
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional

from boardmate.assistant.diff import PROPOSAL_SUMMARY, TaskDiff
from boardmate.assistant.mutation import MutationRequestService
from boardmate.assistant.proposal import (
    Proposal,
    ProposalLifecycle,
    ProposalState,
    TransitionResult,
)
from boardmate.errors import BoardmateError, UserInputError
from boardmate.store import TaskStore

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hi! I'm your task companion. I can manage your tasks or just answer questions about them."
)
CANCELLED_MESSAGE = "Action cancelled."
SUMMARY_REQUEST = "Summarize my board."

# (label, command) pairs; sent through the same path as typed commands
QUICK_REPLIES: tuple[tuple[str, str], ...] = (
    ("Analyze my workload", "Summarize my tasks and tell me if I'm overloaded."),
    ("Add 'Deploy' on Friday", "Add a high priority task 'Deploy to Prod' for next Friday"),
    ("What's critical?", "How many tasks are Critical priority?"),
    ("Clear completed", "Delete all tasks that are marked as Done"),
)


def _reason(exc: Exception) -> str:
    if isinstance(exc, BoardmateError):
        return exc.message
    return str(exc) or type(exc).__name__


class MessageRole(str, Enum):
    USER = "user"
    AI = "ai"
    SYSTEM = "system"


class MessageType(str, Enum):
    TEXT = "text"
    PROPOSAL = "proposal"
    SUMMARY = "summary"


@dataclass(frozen=True)
class Message:
    """
    One turn in the conversation.

    Frozen: state changes replace the message in the log by value.
    """

    id: int
    role: MessageRole
    type: MessageType
    content: str
    proposal: Optional[Proposal] = None
    processing: bool = False
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def data(self) -> Optional[TaskDiff]:
        """The diff carried by a proposal message."""
        return self.proposal.diff if self.proposal else None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "type": self.type.value,
            "content": self.content,
            "createdAt": self.created_at,
        }
        if self.proposal is not None:
            result["data"] = {
                **self.proposal.diff.to_dict(),
                "state": self.proposal.state.value,
                "confirmed": self.proposal.confirmed,
                "cancelled": self.proposal.cancelled,
            }
            result["processing"] = self.processing
        return result


class ConversationLog:
    """Append-only, ordered list of messages with monotonic ids."""

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def append(
        self,
        role: MessageRole,
        content: str,
        type: MessageType = MessageType.TEXT,
        proposal: Optional[Proposal] = None,
    ) -> Message:
        message = Message(
            id=next(self._ids),
            role=role,
            type=type,
            content=content,
            proposal=proposal,
        )
        self._messages.append(message)
        return message

    def get(self, message_id: int) -> Optional[Message]:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def replace(self, message: Message) -> Message:
        """
        Swap in a new version of an existing message, keeping its position.

        Raises:
            KeyError: If no message has this id
        """
        for index, existing in enumerate(self._messages):
            if existing.id == message.id:
                self._messages[index] = message
                return message
        raise KeyError(message.id)

    def pending_proposals(self) -> list[Message]:
        return [m for m in self._messages if m.proposal is not None and m.proposal.is_pending]


class Conversation:
    """
    Drives the command -> proposal -> confirm/cancel protocol.

    Only one model request may be in flight at a time; overlapping commands
    are ignored. Every accepted command adds exactly one user message and
    exactly one reply (ai text, ai proposal, or system error).
    """

    def __init__(
        self,
        service: MutationRequestService,
        store: TaskStore,
        welcome: bool = True,
    ) -> None:
        """Initialize conversation.

        Args:
            service: Mutation request service
            store: Task store that receives confirmed diffs
            welcome: Start with the welcome message
        """
        self.service = service
        self.store = store
        self.log = ConversationLog()
        self.lifecycle = ProposalLifecycle()
        self._in_flight = False
        self._closed = False

        if welcome:
            self.log.append(MessageRole.AI, WELCOME_MESSAGE)

    @property
    def busy(self) -> bool:
        """True while a model request is outstanding."""
        return self._in_flight

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.log.messages

    def close(self) -> None:
        """Close the conversation; responses still in flight are discarded."""
        self._closed = True

    def latest_pending(self) -> Optional[Message]:
        """Newest proposal still awaiting a decision."""
        pending = self.log.pending_proposals()
        return pending[-1] if pending else None

    async def _exchange(
        self,
        user_text: str,
        request: Callable[[], Awaitable[Any]],
        respond: Callable[[Any], Message],
    ) -> Optional[Message]:
        if self._closed:
            logger.debug("Conversation closed; ignoring input")
            return None
        if self._in_flight:
            logger.warning("Ignoring input: a request is already in flight")
            return None

        self._in_flight = True
        self.log.append(MessageRole.USER, user_text)
        try:
            result = await request()
        except Exception as e:
            reason = _reason(e)
            logger.warning(f"Request failed: {reason}")
            if self._closed:
                return None
            return self.log.append(MessageRole.SYSTEM, f"Error: {reason}")
        finally:
            self._in_flight = False

        if self._closed:
            logger.debug("Conversation closed; discarding response")
            return None
        return respond(result)

    async def send(self, text: str) -> Optional[Message]:
        """
        Process a user command.

        Args:
            text: Command text (typed or from a quick reply)

        Returns:
            The reply message, or None if the input was ignored (blank,
            overlapping, or the conversation was closed)
        """
        command = text.strip()
        if not command:
            return None

        async def request() -> TaskDiff:
            return await self.service.request_mutation(command, self.store.snapshot())

        return await self._exchange(command, request, self._reply_with_diff)

    async def send_suggestion(self, index: int) -> Optional[Message]:
        """
        Send one of QUICK_REPLIES.

        Raises:
            UserInputError: If index is out of range
        """
        if not 0 <= index < len(QUICK_REPLIES):
            raise UserInputError(f"No suggestion #{index + 1}")
        _, command = QUICK_REPLIES[index]
        return await self.send(command)

    async def summarize(self) -> Optional[Message]:
        """Ask for a markdown summary of the board."""

        async def request() -> str:
            return await self.service.generate_summary(self.store.snapshot())

        def respond(text: str) -> Message:
            return self.log.append(MessageRole.AI, text, MessageType.SUMMARY)

        return await self._exchange(SUMMARY_REQUEST, request, respond)

    def _reply_with_diff(self, diff: TaskDiff) -> Message:
        if not diff.has_actions:
            return self.log.append(MessageRole.AI, diff.summary)

        self._supersede_pending()
        proposal = ProposalLifecycle.create(diff)
        message = self.log.append(
            MessageRole.AI,
            diff.summary or PROPOSAL_SUMMARY,
            MessageType.PROPOSAL,
            proposal,
        )
        logger.info(f"Proposal {message.id} opened with {diff.action_count} actions")
        return message

    def _supersede_pending(self) -> None:
        # Older proposals were computed against an older snapshot
        for message in self.log.pending_proposals():
            if message.processing:
                continue
            assert message.proposal is not None
            proposal, _ = self.lifecycle.transition(message.proposal, ProposalState.SUPERSEDED)
            self.log.replace(replace(message, proposal=proposal))

    def _proposal_message(self, message_id: int) -> tuple[Optional[Message], Optional[str]]:
        message = self.log.get(message_id)
        if message is None:
            return None, f"No message with id {message_id}"
        if message.proposal is None:
            return None, f"Message {message_id} is not a proposal"
        return message, None

    async def confirm(self, message_id: int) -> TransitionResult:
        """
        Apply a pending proposal's diff to the task store.

        The diff applied is the one stored on the message, i.e. exactly what
        was shown. On failure the proposal stays pending and a system error
        message is appended, so the user can retry or cancel.

        Args:
            message_id: Id of the proposal message

        Returns:
            TransitionResult (success=False for no-ops and failures)
        """
        message, error = self._proposal_message(message_id)
        if message is None:
            return TransitionResult(success=False, current_state=None, message=str(error))
        assert message.proposal is not None

        if message.processing:
            return TransitionResult(
                success=False,
                current_state=message.proposal.state,
                message="Changes are already being applied",
            )
        if not self.lifecycle.can_transition(message.proposal.state, ProposalState.CONFIRMED):
            _, result = self.lifecycle.transition(message.proposal, ProposalState.CONFIRMED)
            return result

        diff = message.proposal.diff
        self.log.replace(replace(message, processing=True))
        try:
            await self.store.apply_diff(diff)
        except Exception as e:
            reason = _reason(e)
            logger.error(f"Failed to apply proposal {message_id}: {reason}")
            current = self.log.get(message_id) or message
            self.log.replace(replace(current, processing=False))
            self.log.append(MessageRole.SYSTEM, f"Error: Failed to apply changes: {reason}")
            return TransitionResult(
                success=False,
                current_state=ProposalState.PENDING,
                message=f"Failed to apply changes: {reason}",
            )

        current = self.log.get(message_id) or message
        assert current.proposal is not None
        proposal, result = self.lifecycle.transition(current.proposal, ProposalState.CONFIRMED)
        self.log.replace(replace(current, proposal=proposal, processing=False))
        return result

    def cancel(self, message_id: int) -> TransitionResult:
        """
        Reject a pending proposal. Never touches the task store.

        Args:
            message_id: Id of the proposal message

        Returns:
            TransitionResult (success=False for no-ops)
        """
        message, error = self._proposal_message(message_id)
        if message is None:
            return TransitionResult(success=False, current_state=None, message=str(error))
        assert message.proposal is not None

        if message.processing:
            return TransitionResult(
                success=False,
                current_state=message.proposal.state,
                message="Changes are being applied and can no longer be cancelled",
            )

        proposal, result = self.lifecycle.transition(message.proposal, ProposalState.CANCELLED)
        if result.success:
            self.log.replace(replace(message, proposal=proposal))
            self.log.append(MessageRole.SYSTEM, CANCELLED_MESSAGE)
        return result
