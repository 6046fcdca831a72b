"""Boardmate CLI entrypoint."""

import asyncio
import json
import sys
from typing import Optional

import click

from boardmate.assistant.conversation import QUICK_REPLIES, Conversation, Message, MessageRole
from boardmate.assistant.diff import TaskDiff
from boardmate.assistant.mutation import MutationRequestService
from boardmate.assistant.render import (
    echo_error,
    echo_success,
    render_message,
    render_proposal,
    render_task_table,
)
from boardmate.config import Config, DebugConfig, get_config
from boardmate.errors import EXIT_ERROR, EXIT_PARTIAL, BoardmateError, UserInputError
from boardmate.logging import get_logger, setup_logging
from boardmate.store import JsonTaskStore, TaskStore

logger = get_logger(__name__)

CHAT_HELP = """Commands:
  <text>           Ask the assistant or request board changes
  /confirm [id]    Apply a proposal (default: the latest pending one)
  /cancel [id]     Reject a proposal (default: the latest pending one)
  /suggest [n]     Send quick reply n (no argument lists them)
  /summary         Summarize the board
  /tasks           Show the task list
  /help            Show this help
  /exit            Quit"""


def _open(config: Config) -> tuple[MutationRequestService, JsonTaskStore]:
    return MutationRequestService(config=config), JsonTaskStore(config.tasks_path)


def _titles(store: TaskStore) -> dict[str, str]:
    try:
        return {t.id: t.title for t in store.snapshot()}
    except BoardmateError:
        return {}


def _fail(e: BoardmateError) -> None:
    echo_error(f"Error: {e.message}")
    sys.exit(e.exit_code)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging (also BOARDMATE_DEBUG=1)")
@click.version_option(package_name="boardmate")
def boardmate(verbose: bool) -> None:
    """Boardmate - AI assistant for your task board."""
    setup_logging(verbose=verbose or DebugConfig.from_env().enabled)


@boardmate.command()
def chat() -> None:
    """
    Start a conversation about your task board.

    The assistant answers questions and proposes board changes. Proposals
    are applied only on /confirm.

    Type /help for command reference.
    """
    try:
        config = get_config()
    except BoardmateError as e:
        _fail(e)
        return

    service, store = _open(config)
    conversation = Conversation(service, store)

    def show_new(since: int) -> None:
        titles = _titles(store)
        for message in conversation.messages[since:]:
            click.echo("\n" + render_message(message, titles) + "\n")

    show_new(0)
    click.echo("Type /help for commands, /exit to quit\n")

    try:
        while True:
            user_input = click.prompt("", prompt_suffix="> ").strip()
            if not user_input:
                continue
            if user_input.lower() in ["/exit", "/quit", "/bye"]:
                break

            seen = len(conversation.messages)
            try:
                _dispatch(conversation, user_input)
            except BoardmateError as e:
                logger.debug(f"Chat command failed: {user_input}")
                echo_error(f"\nError: {e.message}\n")
                continue
            show_new(seen)
    except (click.exceptions.Abort, KeyboardInterrupt):
        click.echo("\nExiting...")
    finally:
        conversation.close()


def _resolve_proposal(conversation: Conversation, arg: str) -> int:
    if arg:
        try:
            return int(arg)
        except ValueError:
            raise UserInputError(f"Invalid message id: {arg}")
    latest = conversation.latest_pending()
    if latest is None:
        raise UserInputError("No pending proposal")
    return latest.id


def _show_proposal_state(conversation: Conversation, message_id: int) -> None:
    for message in conversation.messages:
        if message.id == message_id:
            click.echo("\n" + render_message(message, _titles(conversation.store)) + "\n")
            return


def _dispatch(conversation: Conversation, user_input: str) -> None:
    """Run one REPL line against the conversation."""
    if not user_input.startswith("/"):
        asyncio.run(conversation.send(user_input))
        return

    command, _, arg = user_input.partition(" ")
    command = command.lower()
    arg = arg.strip()

    if command == "/help":
        click.echo(CHAT_HELP)
    elif command == "/confirm":
        message_id = _resolve_proposal(conversation, arg)
        seen = len(conversation.messages)
        result = asyncio.run(conversation.confirm(message_id))
        if result.success:
            echo_success("Changes applied")
            _show_proposal_state(conversation, message_id)
        elif len(conversation.messages) == seen:
            # Failures already appended a system message
            click.echo(result.message)
    elif command == "/cancel":
        message_id = _resolve_proposal(conversation, arg)
        result = conversation.cancel(message_id)
        if not result.success:
            click.echo(result.message)
    elif command == "/suggest":
        if not arg:
            for index, (label, query) in enumerate(QUICK_REPLIES, start=1):
                click.echo(f"  {index}. {label}: {query}")
            return
        try:
            index = int(arg) - 1
        except ValueError:
            raise UserInputError(f"Invalid suggestion number: {arg}")
        asyncio.run(conversation.send_suggestion(index))
    elif command == "/summary":
        asyncio.run(conversation.summarize())
    elif command == "/tasks":
        click.echo(render_task_table(conversation.store.snapshot()))
    else:
        raise UserInputError(f"Unknown command: {command} (type /help)")


@boardmate.command()
@click.argument("command")
def ask(command: str) -> None:
    """
    Send a single command to the assistant.

    Proposed changes are previewed and applied only if you confirm them.

    \b
    Examples:
        boardmate ask "How many tasks are Critical priority?"
        boardmate ask "Add a task 'Deploy to Prod' for Friday"
    """
    try:
        config = get_config()
        service, store = _open(config)
        conversation = Conversation(service, store, welcome=False)
        reply: Optional[Message] = asyncio.run(conversation.send(command))
    except BoardmateError as e:
        _fail(e)
        return

    if reply is None:
        echo_error("Nothing to send")
        sys.exit(EXIT_ERROR)

    if reply.role == MessageRole.SYSTEM:
        echo_error(reply.content)
        sys.exit(EXIT_ERROR)

    click.echo(reply.content)
    if reply.proposal is None:
        return

    click.echo(render_proposal(reply.proposal, titles=_titles(store)))
    if not click.confirm("Apply these changes?", default=False):
        conversation.cancel(reply.id)
        click.echo("Not applied")
        sys.exit(EXIT_PARTIAL)

    result = asyncio.run(conversation.confirm(reply.id))
    if not result.success:
        echo_error(result.message)
        sys.exit(EXIT_ERROR)
    echo_success("Changes applied")


@boardmate.command()
@click.option("--json", "json_output", is_flag=True, help="JSON output")
def tasks(json_output: bool) -> None:
    """List tasks on the board."""
    try:
        config = get_config()
        task_list = JsonTaskStore(config.tasks_path).snapshot()
    except BoardmateError as e:
        _fail(e)
        return

    if json_output:
        click.echo(json.dumps([t.to_dict() for t in task_list], indent=2, sort_keys=True))
    else:
        click.echo(render_task_table(task_list))


@boardmate.command()
def summary() -> None:
    """Summarize the board in markdown."""
    try:
        config = get_config()
        service, store = _open(config)
        text = asyncio.run(service.generate_summary(store.snapshot()))
    except BoardmateError as e:
        _fail(e)
        return
    click.echo(text)


@boardmate.command()
@click.argument("title")
def breakdown(title: str) -> None:
    """Suggest subtasks for a task title."""
    try:
        config = get_config()
        service, _ = _open(config)
        steps = asyncio.run(service.break_down_task(title))
    except BoardmateError as e:
        _fail(e)
        return

    if not steps:
        click.echo("No subtasks suggested")
        return
    for step in steps:
        click.echo(f"- {step['title']}")


@boardmate.command()
@click.argument("text")
@click.option("--add", is_flag=True, help="Offer to add the parsed task to the board")
def parse(text: str, add: bool) -> None:
    """
    Turn free text into a structured task.

    \b
    Examples:
        boardmate parse "fix login bug asap, skedule for tmrw"
        boardmate parse "write quarterly report" --add
    """
    try:
        config = get_config()
        service, store = _open(config)
        fields = asyncio.run(service.parse_task(text))
        if fields is None:
            echo_error("Could not parse a task from that text")
            sys.exit(EXIT_ERROR)

        click.echo(json.dumps(fields, indent=2, sort_keys=True))
        if not add:
            return
        if not click.confirm("Add this task to the board?", default=False):
            click.echo("Not added")
            sys.exit(EXIT_PARTIAL)

        diff = TaskDiff(added=(fields,), summary=f"Add {fields['title']}")
        asyncio.run(store.apply_diff(diff))
        echo_success(f"Added: {fields['title']}")
    except BoardmateError as e:
        _fail(e)


@boardmate.command()
@click.argument("task_id")
def analyze(task_id: str) -> None:
    """
    Check whether a task is a concrete action or an ambition to become.

    Flagged tasks can be marked on the board after confirmation.
    """
    try:
        config = get_config()
        service, store = _open(config)
        task = next((t for t in store.snapshot() if t.id == task_id), None)
        if task is None:
            raise UserInputError(f"No task with id {task_id}")

        verdict = asyncio.run(service.analyze_task(task))
        if verdict is None:
            echo_error("Could not analyze that task")
            sys.exit(EXIT_ERROR)

        if not verdict["isBecoming"]:
            echo_success(f"Action: {task.title}")
            return

        click.echo(f"Becoming: {task.title}")
        if verdict["warning"]:
            click.echo(f"  {verdict['warning']}")
        if not click.confirm("Flag this task on the board?", default=False):
            click.echo("Not flagged")
            return

        diff = TaskDiff(
            updated=(
                {"id": task.id, "isBecoming": True, "becomingWarning": verdict["warning"]},
            ),
            summary=f"Flag {task.title}",
        )
        asyncio.run(store.apply_diff(diff))
        echo_success(f"Flagged: {task.title}")
    except BoardmateError as e:
        _fail(e)
