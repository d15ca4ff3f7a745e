"""The lending server: reads requests from a named pipe and serves them."""

from __future__ import annotations

import os
import stat
import sys
import threading
import time
from dataclasses import dataclass
from datetime import datetime

from .buffer import BufferClosed
from .entities import BORROWED, PIPE_NAME_SIZE, Operation, Request
from .ipc import read_request, send_response
from .storage import format_request, load_library, save_library
from .workers import ServerState, _format_date, console_worker, update_worker

USAGE = "Uso correcto: ./receptor -p pipeReceptor -f filedatos [-v] [-s filesalida]"
DEFAULT_PIPE = "../ipc/pipeReceptor"
IDLE_SECONDS = 0.05

RETURN_ACCEPTED = "✅ La biblioteca está recibiendo el libro."
RENEW_ACCEPTED = "✅ Renovación aceptada. Nueva fecha de entrega en 7 días."
BORROW_ACCEPTED = "✅ Solicitud aceptada. Realizando actualización de prestamo."
BORROW_REJECTED = (
    "Solicitud Rechazada. El libro solicitado no tiene copias disponibles."
)


@dataclass
class ServerOptions:
    """Command-line settings of the server."""

    pipe: str = ""
    data_file: str | None = None
    output_file: str | None = None
    verbose: bool = False


def parse_args(argv: list[str]) -> ServerOptions:
    """Parse server arguments; raise ValueError with the usage on too few."""
    args = list(argv)
    if len(args) < 3:
        raise ValueError(USAGE)
    options = ServerOptions()
    items = iter(args)
    for arg in items:
        if arg == "-p":
            value = next(items, None)
            if value is not None:
                options.pipe = value[: PIPE_NAME_SIZE - 1]
        elif arg == "-f":
            options.data_file = next(items, options.data_file)
        elif arg == "-v":
            options.verbose = True
        elif arg == "-s":
            options.output_file = next(items, options.output_file)
    return options


def _respond(request: Request, message: str) -> bool:
    try:
        send_response(request, message)
    except OSError as exc:
        print(f"Error abriendo el pipe de respuesta: {exc}", file=sys.stderr)
        return False
    return True


def handle_request(state: ServerState, request: Request, now: datetime) -> None:
    """Serve one request read from the server's pipe."""
    operation = request.operation
    if operation in (Operation.RETURN, Operation.RENEW):
        message = RETURN_ACCEPTED if operation == Operation.RETURN else RENEW_ACCEPTED
        if _respond(request, message):
            try:
                state.buffer.put(request)
            except BufferClosed:
                pass
        else:
            print(
                f"No se pudo enviar la respuesta al cliente {request.pid}",
                file=sys.stderr,
            )
        state.request_menu()
    elif operation == Operation.BORROW:
        with state.lock:
            library = state.library
            book = library.find_book(request.isbn)
            copy = library.find_available_copy(request.isbn)
            if book is not None and copy is not None:
                _respond(request, BORROW_ACCEPTED)
                copy.status = BORROWED
                copy.date = _format_date(now)
                library.add_report(BORROWED, book.title, book.isbn, copy.id, copy.date)
            else:
                _respond(request, BORROW_REJECTED)
        state.request_menu()
    elif operation == Operation.QUIT:
        state.write(f"\n\n\nCliente {request.pid} ha terminado sus solicitudes.\n")
        path = state.output_path
        if path is not None:
            try:
                with state.lock:
                    save_library(state.library, path)
            except OSError:
                print(f"Error al guardar la base de datos en '{path}'", file=sys.stderr)
            else:
                state.write(f"📁 Base de datos guardada exitosamente en '{path}'\n\n")


def _prepare_pipe(path: str) -> str:
    """Return the pipe to read from, creating the default one if needed."""
    try:
        info = os.stat(path)
    except OSError:
        print(f"Pipe no encontrado. Se intentará crear: '../ipc/{path}'")
        os.mkfifo(DEFAULT_PIPE, 0o666)
        return DEFAULT_PIPE
    if not stat.S_ISFIFO(info.st_mode):
        raise ValueError(f"Error: {path} existe pero no es un pipe")
    return path


def main(argv: list[str] | None = None) -> int:
    """Run the server until a console 's' command stops it."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options = parse_args(args)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    print("\n🔧 Iniciando servidor ...")
    print(f"\nPipe receptor: {options.pipe}")
    print(f"Archivo base de datos: {options.data_file or '(No especificado)'}")
    if options.output_file:
        print(f"Archivo de salida: {options.output_file}")
    if options.verbose:
        print("Modo verbose activado")

    try:
        pipe = _prepare_pipe(options.pipe)
    except OSError as exc:
        print(f"Error al crear el pipe receptor de solicitudes: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    if options.data_file is None:
        print("Error al cargar la base de datos: archivo no especificado", file=sys.stderr)
        return 1
    try:
        library = load_library(options.data_file)
    except OSError as exc:
        print(f"Error al cargar la base de datos: {exc}", file=sys.stderr)
        return 1

    try:
        fd = os.open(pipe, os.O_RDONLY | os.O_NONBLOCK)
    except OSError as exc:
        print(f"Error al abrir el pipe receptor: {exc}", file=sys.stderr)
        return 1

    print(f"Base de datos cargada correctamente.: '{options.data_file}'")
    print("\n\n")
    print("➤ Servidor esperando solicitudes ...")

    state = ServerState(library=library, output_path=options.output_file)
    threads = [
        threading.Thread(target=update_worker, args=(state,), daemon=True),
        threading.Thread(target=console_worker, args=(state,), daemon=True),
    ]
    for thread in threads:
        thread.start()

    try:
        while state.running:
            request = read_request(fd)
            if request is None:
                time.sleep(IDLE_SECONDS)
                continue
            handle_request(state, request, datetime.now())
            if options.verbose:
                state.write(format_request(request))
    except KeyboardInterrupt:
        pass
    finally:
        os.close(fd)
        state.stop()

    state.write("\n\n")
    for thread in threads:
        thread.join()
    return 0