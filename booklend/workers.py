"""Background work of the lending server: loan updates and the console."""

from __future__ import annotations

import select
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TextIO

from .buffer import BufferClosed, RequestBuffer
from .entities import AVAILABLE, BORROWED, Copy, Library, Operation, Request
from .storage import format_reports, save_library

RENEWAL_DAYS = 7
POLL_SECONDS = 1.0

MENU = (
    "\n ╔══════════════════════════════════════╗\n"
    " ║          MENÚ DE COMANDOS            ║\n"
    " ╠══════════════════════════════════════╣\n"
    " ║  r = Imprimir reporte                ║\n"
    " ║  s = Salir                           ║\n"
    " ╚══════════════════════════════════════╝\n"
    "\nIngrese comando: "
)


def _format_date(moment: datetime) -> str:
    return f"{moment.day:02d}-{moment.month:02d}-{moment.year:04d}"


@dataclass
class ServerState:
    """What the server's threads share."""

    library: Library
    buffer: RequestBuffer = field(default_factory=RequestBuffer)
    output_path: str | None = None
    out: TextIO | None = None
    lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False, compare=False
    )
    _running: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False, compare=False
    )
    _menu: bool = field(default=True, init=False, repr=False, compare=False)
    _menu_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )
    _print_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self._running.set()

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def stop(self) -> None:
        """Stop the server and wake anything waiting on the buffer."""
        self._running.clear()
        self.buffer.close()

    def request_menu(self) -> None:
        """Ask the console to show its menu again."""
        with self._menu_lock:
            self._menu = True

    def take_menu(self) -> bool:
        """Return whether the menu is due, clearing the request."""
        with self._menu_lock:
            due, self._menu = self._menu, False
            return due

    def write(self, text: str) -> None:
        """Write console output without interleaving between threads."""
        stream = self.out if self.out is not None else sys.stdout
        with self._print_lock:
            stream.write(text)
            stream.flush()


def apply_update(library: Library, request: Request, now: datetime) -> Copy | None:
    """Apply a return or renewal to the first borrowed copy of the book.

    Returns the updated copy, or None for an operation that is neither.
    Raises LookupError when the book has no borrowed copy.
    """
    book = library.find_book(request.isbn)
    copy = library.find_borrowed_copy(request.isbn)
    if book is None or copy is None:
        raise LookupError(f"no borrowed copy for ISBN {request.isbn}")
    if request.operation == Operation.RETURN:
        copy.status = AVAILABLE
        copy.date = _format_date(now)
        library.add_report(AVAILABLE, book.title, book.isbn, copy.id, copy.date)
    elif request.operation == Operation.RENEW:
        copy.date = _format_date(now + timedelta(days=RENEWAL_DAYS))
        library.add_report(BORROWED, book.title, book.isbn, copy.id, copy.date)
    else:
        return None
    return copy


def update_worker(state: ServerState) -> None:
    """Consume queued returns and renewals until the server stops."""
    while state.running:
        try:
            request = state.buffer.get()
        except BufferClosed:
            break
        if not state.running:
            break
        with state.lock:
            try:
                apply_update(state.library, request, datetime.now())
            except LookupError:
                state.write(
                    f"\nDevolución para ISBN {request.isbn} rechazada. "
                    "No se encontró copia prestada.\n"
                )


def handle_command(state: ServerState, command: str) -> bool:
    """Run one console command; return False once the server should stop."""
    if command == "s":
        if state.output_path:
            try:
                with state.lock:
                    save_library(state.library, state.output_path)
            except OSError as exc:
                print(f"Error abriendo archivo de salida: {exc}", file=sys.stderr)
        state.stop()
        return False
    if command == "r":
        with state.lock:
            text = format_reports(state.library)
        state.write(text)
        state.request_menu()
        return True
    state.write("\nComando inválido.\n")
    return True


def _wait_readable(stream: TextIO, timeout: float) -> bool:
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return True
    try:
        ready, _, _ = select.select([fd], [], [], timeout)
    except OSError as exc:
        print(f"select: {exc}", file=sys.stderr)
        return False
    return bool(ready)


def console_worker(state: ServerState, stdin: TextIO | None = None) -> None:
    """Show the command menu and run commands typed on ``stdin``."""
    stream = sys.stdin if stdin is None else stdin
    while state.running:
        if state.take_menu():
            state.write(MENU)
        if not _wait_readable(stream, POLL_SECONDS):
            continue
        line = stream.readline()
        if not line:
            return
        for command in "".join(line.split()):
            if not handle_command(state, command):
                return