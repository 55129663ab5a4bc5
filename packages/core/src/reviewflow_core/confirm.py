"""Streaming issue confirmation.

confirm_issues() drains the issue and error streams of one review run at the
same time. Any item on the error stream aborts the run and voids everything
confirmed so far; the run succeeds when the issue stream closes.

In interactive mode each issue is put to the user before the next one is
read. The prompt blocks on stdin, so it runs on a daemon thread and the event
loop keeps watching the error stream while the user thinks: a fatal error
arriving mid-prompt still ends the run immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import threading
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.markup import escape

from reviewflow_core.errors import ReviewStreamError
from reviewflow_core.models import Issue
from reviewflow_core.service import ReviewStreams

console = Console()
logger = logging.getLogger(__name__)

Confirmer = Callable[[Issue], bool]


def prompt_confirm(issue: Issue) -> bool:
    """Show one issue and ask whether to keep it."""
    pos = issue.position
    console.print(
        f"\n[bold cyan]{escape(pos.filename)}[/bold cyan]  line [bold]{pos.start_line}[/bold]  "
        f"[yellow]{escape(issue.name)}[/yellow]"
    )
    code = issue.line.strip()
    if code:
        console.print(f"  [dim]{escape(code)}[/dim]")
    console.print(f"  {escape(issue.comment)}")
    return click.confirm("Keep this issue?", default=True)


class IssueLog:
    """Append-only JSON-lines record of confirmed issues.

    Each issue is flushed to disk as soon as it is confirmed so an interrupted
    interactive session keeps the decisions already made.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._fh = open(self._path, "w", encoding="utf-8")

    def write(self, issue: Issue) -> None:
        self._fh.write(json.dumps(issue.to_dict()) + "\n")
        self._fh.flush()
        os.fsync(self._fh.fileno())

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def discard(self) -> None:
        self.close()
        self._path.unlink(missing_ok=True)


def _ask_in_thread(confirmer: Confirmer, issue: Issue) -> asyncio.Future:
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def _resolve(result=None, error: BaseException | None = None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(bool(result))

    def _run() -> None:
        try:
            answer = confirmer(issue)
        except Exception as e:
            outcome = {"error": e}
        else:
            outcome = {"result": answer}
        try:
            loop.call_soon_threadsafe(lambda: _resolve(**outcome))
        except RuntimeError:
            # The run already ended (fatal error or interrupt) and its loop is closed.
            logger.debug("Dropping confirmation answer for %s: review already finished", issue.name)

    threading.Thread(target=_run, name="reviewflow-confirm", daemon=True).start()
    return future


def _raise_on_error(item) -> None:
    if item is None:
        return
    cause = item if isinstance(item, BaseException) else None
    raise ReviewStreamError(f"Review aborted: {item}") from cause


async def confirm_issues(
    streams: ReviewStreams,
    keep_all: bool = True,
    output: str | None = None,
    confirmer: Confirmer | None = None,
) -> list[Issue]:
    """Collect the issues of one review run, in arrival order.

    ``keep_all`` accepts every issue without asking. ``output``, if set,
    receives each confirmed issue as a JSON line the moment it is confirmed;
    the file is removed again if the run fails.

    Raises ReviewStreamError on the first item from the error stream.
    """
    confirmer = confirmer or prompt_confirm
    confirmed: list[Issue] = []
    issue_log = IssueLog(output) if output else None

    issue_get: asyncio.Future | None = asyncio.ensure_future(streams.issues.get())
    error_get: asyncio.Future | None = asyncio.ensure_future(streams.errors.get())
    prompt: asyncio.Future | None = None
    prompted: Issue | None = None

    def accept(issue: Issue) -> None:
        confirmed.append(issue)
        if issue_log is not None:
            issue_log.write(issue)

    try:
        while True:
            # While a prompt is open the next issue is not read, so the
            # confirmation order stays the arrival order.
            waiting = {f for f in (error_get, prompt or issue_get) if f is not None}
            done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

            # Checked first: when both streams are ready the error wins.
            if error_get is not None and error_get in done:
                _raise_on_error(error_get.result())
                logger.debug("Error stream closed")
                error_get = None

            if prompt is not None:
                if prompt in done:
                    if prompt.result():
                        accept(prompted)
                    else:
                        logger.debug("Issue %s rejected", prompted.name)
                    prompt = prompted = None
                    issue_get = asyncio.ensure_future(streams.issues.get())
                continue

            if issue_get not in done:
                continue

            issue = issue_get.result()
            if issue is None:
                # An error already queued behind the closing issue stream still counts.
                if error_get is not None and not error_get.done() and not streams.errors.empty():
                    _raise_on_error(streams.errors.get_nowait())
                break

            if keep_all:
                accept(issue)
                issue_get = asyncio.ensure_future(streams.issues.get())
            else:
                issue_get = None
                prompted = issue
                prompt = _ask_in_thread(confirmer, issue)
    except ReviewStreamError:
        if issue_log is not None:
            issue_log.discard()
        raise
    finally:
        for pending in (issue_get, error_get, prompt):
            if pending is not None and not pending.done():
                pending.cancel()
        if issue_log is not None:
            issue_log.close()

    return confirmed
