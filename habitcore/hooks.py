"""Lifecycle hooks: shell commands fired on habit events.

Configured via hooks.yaml in the workspace, e.g.::

    on_day_complete:
      - notify-send "All habits done"
    post_rollover:
      - command: ./sync.sh
        timeout: 3

Events:
- post_rollover
- on_day_complete
- on_habit_added, on_habit_deleted

The engine fires events through a HookDispatcher, which runs them on one
background worker in the order they were fired. An engine call never waits
for a hook. Each command receives the event as JSON on stdin and is killed
once its timeout (capped at MAX_TIMEOUT seconds) runs out.
"""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from habitcore.fileio import read_yaml
from habitcore.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)


HOOK_EVENTS = frozenset({
    "post_rollover",
    "on_day_complete",
    "on_habit_added",
    "on_habit_deleted",
})

DEFAULT_TIMEOUT = 5.0
MAX_TIMEOUT = 30.0
OUTPUT_LIMIT = 4096


@dataclass
class HookResult:
    event: str
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and self.error is None


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml."""
    if root is None:
        root = workspace_root()
    return read_yaml(hooks_config_path(root))


def hook_commands(config: dict[str, Any], event: str) -> list[tuple[str, float]]:
    """(command, timeout) pairs registered for *event*. Malformed entries are skipped."""
    entries = config.get(event)
    if event not in HOOK_EVENTS or not isinstance(entries, list):
        return []

    commands = []
    for entry in entries:
        if isinstance(entry, str):
            command, timeout = entry, DEFAULT_TIMEOUT
        elif isinstance(entry, dict):
            command = entry.get("command", "")
            timeout = entry.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue
        if not command or not isinstance(command, str):
            continue
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            timeout = DEFAULT_TIMEOUT
        commands.append((command, min(float(timeout), MAX_TIMEOUT)))
    return commands


def _run_command(event: str, command: str, timeout: float, payload: str, cwd: Path) -> HookResult:
    try:
        proc = subprocess.run(
            command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd),
        )
    except subprocess.TimeoutExpired:
        logger.warning("Hook %r (%s) timed out after %ss", command, event, timeout)
        return HookResult(event, command, -1, error=f"timed out after {timeout}s")
    except OSError as e:
        logger.warning("Hook %r (%s) failed: %s", command, event, e)
        return HookResult(event, command, -1, error=str(e))

    if proc.returncode != 0:
        logger.warning("Hook %r (%s) exited with %d", command, event, proc.returncode)
    return HookResult(
        event,
        command,
        proc.returncode,
        stdout=proc.stdout[:OUTPUT_LIMIT],
        stderr=proc.stderr[:OUTPUT_LIMIT],
    )


def run_hooks(event: str, context: dict[str, Any], root: Path | None = None) -> list[HookResult]:
    """Run every command registered for *event* now, one after another."""
    if event not in HOOK_EVENTS:
        return []
    if root is None:
        root = workspace_root()

    try:
        config = load_hooks_config(root)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read hooks config: %s", e)
        return []

    payload = json.dumps({"event": event, **context}, ensure_ascii=False)
    return [
        _run_command(event, command, timeout, payload, root)
        for command, timeout in hook_commands(config, event)
    ]


class HookDispatcher:
    """Runs hooks for one workspace on a single background worker."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._executor: ThreadPoolExecutor | None = None
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def fire(self, event: str, context: dict[str, Any]) -> Future | None:
        """Queue *event* and return at once. Unknown events are dropped."""
        if event not in HOOK_EVENTS:
            logger.debug("Ignoring unknown hook event %s", event)
            return None
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="habit-hooks")
            future = self._executor.submit(run_hooks, event, dict(context), self.root)
            self._pending.add(future)
        future.add_done_callback(self._finished)
        return future

    def wait(self, timeout: float | None = None) -> bool:
        """Block until queued hooks have run. Returns False if *timeout* expired first."""
        with self._lock:
            pending = set(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _finished(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Hook worker failed: %s", future.exception())
