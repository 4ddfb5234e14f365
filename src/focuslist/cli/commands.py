# src/focuslist/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.state import AppState
from ..storage.kv_store import StorageError
from ..tasks.task_api import DUE_PRESETS, TaskBoard, add_task_due_today, load_board, resolve_due_preset
from ..tasks.task_models import Task
from ..tasks.task_order import due_label
from ..timer.timer_models import TimerMode

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, /timer, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return await h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return await h2(state, args)
        except StorageError:
            logger.warning("Command /%s failed on storage.", name, exc_info=True)
            return "Storage is unavailable right now; nothing was changed. Please try again."

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_id(raw: str) -> int | None:
    try:
        return int(raw)
    except ValueError:
        return None


def _format_task(task: Task, board: TaskBoard) -> str:
    mark = "x" if task.completed else " "
    line = f"  [{mark}] {task.id}  {task.text}"
    if not task.completed:
        line += f"  ({due_label(task.due_date, board.now)})"
    return line


def render_board(board: TaskBoard) -> str:
    title = f"Search '{board.term}'" if board.term else "Tasks"
    lines = [f"{title}:", f"Active ({board.active_count}):"]
    lines.extend(_format_task(t, board) for t in board.active)
    if not board.active:
        lines.append("  (none)")
    if board.completed:
        lines.append(f"Completed ({board.completed_count}):")
        lines.extend(_format_task(t, board) for t in board.completed)
    return "\n".join(lines)


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list         -> both lists in display order
    /list <term>  -> only tasks whose text contains <term>
    """
    board = await load_board(state.tasks, state.clock.now(), " ".join(args))
    return render_board(board)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <text>     -> new task due today
    /add -n <text>  -> new task without a due date
    """
    no_date = bool(args) and args[0] == "-n"
    text = " ".join(args[1:] if no_date else args).strip()
    if not text:
        return "Usage: /add [-n] <text>"

    if no_date:
        task = await state.tasks.add_task(text)
    else:
        task = await add_task_due_today(state.tasks, text, state.clock.now())
    return f"Added {task.id}: {task.text}"


async def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /done <id>"
    task = await state.tasks.toggle_task(task_id)
    if task is None:
        return f"No task with id {task_id}."
    return f"Task {task_id} marked {'done' if task.completed else 'active'}."


async def cmd_edit(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /edit <id> <text>"
    task = await state.tasks.update_text(task_id, " ".join(args[1:]))
    if task is None:
        return f"Task {task_id} unchanged."
    return f"Task {task_id}: {task.text}"


async def cmd_due(state: AppState, args: list[str]) -> str:
    presets = "|".join([*DUE_PRESETS, "clear"])
    task_id = _parse_id(args[0]) if args else None
    if task_id is None or len(args) < 2:
        return f"Usage: /due <id> {presets}"
    now = state.clock.now()
    try:
        due = resolve_due_preset(args[1], now)
    except KeyError:
        return f"Unknown due date '{args[1]}'. Use one of: {presets}"
    task = await state.tasks.set_due_date(task_id, due)
    if task is None:
        return f"No task with id {task_id}."
    return f"Task {task_id} due: {due_label(task.due_date, now)}"


async def cmd_rm(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /rm <id>"
    removed = await state.tasks.delete_task(task_id)
    return f"Task {task_id} deleted." if removed else f"No task with id {task_id}."


async def cmd_clear(state: AppState, args: list[str]) -> str:
    removed = await state.tasks.clear_completed()
    return f"Cleared {removed} completed task(s)."


def _timer_status(state: AppState) -> str:
    view = state.timer.view()
    return f"Timer: {view.text} [{view.mode.value}, {view.phase.value}]"


async def cmd_timer(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /timer              -> show status
    /timer start|pause  -> run / hold the countdown
    /timer reset        -> full duration for the current mode
    /timer work|break   -> switch mode (stops the countdown)
    /timer set MM:SS    -> set remaining time (only while not running)
    """
    sub = args[0].lower() if args else "status"
    timer = state.timer

    if sub == "status":
        return _timer_status(state)
    if sub == "start":
        if not await timer.start():
            return "Timer is already running."
        if emit is not None and state.notifier is None:
            emit("[TIMER] Notifications are disabled; use /timer to check progress.")
        return _timer_status(state)
    if sub == "pause":
        if not await timer.pause():
            return "Timer is not running."
        return _timer_status(state)
    if sub == "reset":
        await timer.reset()
        return _timer_status(state)
    if sub in ("work", "break"):
        await timer.switch_mode(TimerMode(sub))
        return _timer_status(state)
    if sub == "set":
        if timer.running:
            return f"Pause the timer before editing it. {_timer_status(state)}"
        if len(args) < 2 or not await timer.set_remaining_manually(args[1]):
            # Invalid input: the previous value stays.
            return f"Expected MM:SS (minutes 0-99, seconds 0-59). {_timer_status(state)}"
        return _timer_status(state)

    return "Usage: /timer [status|start|pause|reset|work|break|set MM:SS]"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks: /list [search term].", aliases=["ls", "find"])
registry.register("add", cmd_add, help_text="Add a task due today (-n for no date): /add [-n] <text>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("edit", cmd_edit, help_text="Edit task text: /edit <id> <text>.")
registry.register("due", cmd_due, help_text="Set due date: /due <id> today|tomorrow|week|clear.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("clear", cmd_clear, help_text="Remove all completed tasks.")
registry.register(
    "timer", cmd_timer, help_text="Work/break timer: /timer [start|pause|reset|work|break|set MM:SS]."
)
