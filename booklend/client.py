"""The lending client: sends requests to the server and shows its replies."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TextIO

from .entities import PIPE_NAME_SIZE, Operation, Request, Response

USAGE = "Uso: ./solicitante [-i requestfile] -p pipeReceptor"
MISSING_PIPE = "Error: Debes proporcionar el nombre del pipe receptor con -p"
RESPONSE_DIR = "../ipc"
NO_RESPONSE = "No se recibió respuesta o fue vacía."

MENU = (
    "\n"
    " ╔══════════════════════════════════════╗\n"
    " ║         📚 MENÚ DE BIBLIOTECA        ║\n"
    " ╠══════════════════════════════════════╣\n"
    " ║  1. 📤 Devolver un libro             ║\n"
    " ║  2. 🔁 Renovar un libro              ║\n"
    " ║  3. 📥 Solicitar prestado un libro   ║\n"
    " ║  0. Salir                            ║\n"
    " ╚══════════════════════════════════════╝\n"
)

_MENU_OPERATIONS = {
    1: Operation.RETURN.value,
    2: Operation.RENEW.value,
    3: Operation.BORROW.value,
}

_REQUEST_LINE = re.compile(r"(.),\s*([^\n,]+),\s*([+-]?\d+)\s*")
_INTEGER = re.compile(r"[+-]?\d+")


@dataclass
class ClientOptions:
    """Command-line settings of the client."""

    pipe: str = ""
    request_file: str | None = None


def parse_args(argv: list[str]) -> ClientOptions:
    """Parse client arguments; raise ValueError when they are unusable."""
    args = list(argv)
    if len(args) < 2:
        raise ValueError(USAGE)
    options = ClientOptions()
    items = iter(args)
    for arg in items:
        if arg == "-i":
            options.request_file = next(items, options.request_file)
        elif arg == "-p":
            value = next(items, None)
            if value is not None:
                options.pipe = value[: PIPE_NAME_SIZE - 1]
    if not options.pipe:
        raise ValueError(MISSING_PIPE)
    return options


def parse_request_line(line: str) -> Request:
    """Parse an ``operation, title, isbn`` line of a request file."""
    match = _REQUEST_LINE.fullmatch(line)
    if match is None:
        raise ValueError(f"malformed request line: {line!r}")
    operation, title, isbn = match.groups()
    return Request(operation=operation, title=title, isbn=int(isbn))


def read_requests(stream: TextIO) -> Iterator[Request]:
    """Yield the requests of a request file, stopping at the first bad line."""
    for line in stream:
        if not line.strip():
            continue
        try:
            yield parse_request_line(line)
        except ValueError:
            return


def wait_response(path: str | os.PathLike[str]) -> Response | None:
    """Wait for one reply on the response pipe at ``path``.

    Returns None when the writer closes the pipe before a whole reply
    arrives. Raises OSError if the pipe cannot be opened.
    """
    size = Response.LAYOUT.size
    fd = os.open(path, os.O_RDONLY)
    try:
        data = bytearray()
        while len(data) < size:
            chunk = os.read(fd, size - len(data))
            if not chunk:
                break
            data += chunk
    finally:
        os.close(fd)
    if len(data) != size:
        return None
    return Response.from_bytes(bytes(data))


def _ask_integer(
    input_fn: Callable[[], str],
    output: TextIO,
    retry: str,
    accept: Callable[[int], bool] = lambda value: True,
) -> int:
    while True:
        text = input_fn().strip()
        if _INTEGER.fullmatch(text) and accept(int(text)):
            return int(text)
        output.write(retry)
        output.flush()


def prompt_request(
    input_fn: Callable[[], str], output: TextIO
) -> Request | None:
    """Ask the user for a request through the menu; None means quit.

    EOFError from ``input_fn`` propagates to the caller.
    """
    output.write(MENU)
    output.write("\nOperación a realizar: ")
    output.flush()
    option = _ask_integer(
        input_fn,
        output,
        "Opción inválida... Intenta de nuevo: ",
        lambda value: 0 <= value <= 3,
    )
    if option == 0:
        output.write("\nSaliendo del programa...\n\n")
        output.flush()
        return None

    operation = _MENU_OPERATIONS[option]
    output.write("\n📄 Nombre del libro: ")
    output.flush()
    title = ""
    while not title:
        title = input_fn().lstrip()

    output.write("   ISBN: ")
    output.flush()
    isbn = _ask_integer(input_fn, output, "   ISBN inválido. Intenta de nuevo: ")

    output.write("\nSolicitud realizada\n")
    output.write(f"Operación: {operation}  -  Libro: {title}  -  ISBN: {isbn}\n")
    output.flush()
    return Request(operation=operation, title=title, isbn=isbn)


def _send(fd: int, request: Request) -> None:
    try:
        os.write(fd, request.pack())
    except OSError as exc:
        print(f"Error al enviar solicitud: {exc}", file=sys.stderr)


def _show_response(path: str) -> None:
    try:
        response = wait_response(path)
    except OSError as exc:
        print(f"Error al abrir pipe de respuesta: {exc}", file=sys.stderr)
        response = None
    if response is None:
        print(NO_RESPONSE)
    else:
        print(f"\nCódigo de respuesta: {response.code}\nContenido: {response.message}")


def _run_file(fd: int, path: str, pid: int, response_path: str) -> int:
    try:
        stream = open(path, encoding="utf-8")
    except OSError as exc:
        print(f"Error al abrir el archivo de solicitudes: {exc}", file=sys.stderr)
        return 1
    with stream:
        for request in read_requests(stream):
            request.pid = pid
            request.pipe_response = response_path
            print(
                f"- Solicitud: {request.operation} - {request.title} - "
                f"{request.isbn} PID: {request.pid}"
            )
            _send(fd, request)
            if request.operation != Operation.QUIT:
                _show_response(response_path)
            print()
    _send(
        fd,
        Request(
            operation=Operation.QUIT.value,
            title="Salir",
            isbn=0,
            pid=pid,
            pipe_response=response_path,
        ),
    )
    return 0


def _run_interactive(fd: int, pid: int, response_path: str) -> int:
    while True:
        try:
            request = prompt_request(input, sys.stdout)
        except EOFError:
            print("\nSaliendo del programa...\n")
            return 0
        if request is None:
            return 0
        request.pid = pid
        request.pipe_response = response_path
        _send(fd, request)
        _show_response(response_path)
        print()


def main(argv: list[str] | None = None) -> int:
    """Send requests from a file or the menu to the server's pipe."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options = parse_args(args)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        fd = os.open(options.pipe, os.O_WRONLY | os.O_NONBLOCK)
    except OSError as exc:
        print(f"\nError al abrir el pipe receptor: {exc}", file=sys.stderr)
        print(
            "El servidor/receptor parece estar apagado. "
            "Intenta iniciarlo antes de ejecutar este programa.\n",
            file=sys.stderr,
        )
        return 1

    pid = os.getpid()
    response_path = f"{RESPONSE_DIR}/response_{pid}"[: PIPE_NAME_SIZE - 1]
    try:
        os.mkfifo(response_path, 0o666)
    except OSError as exc:
        print(f"Error al crear el pipe de respuesta: {exc}", file=sys.stderr)
        os.close(fd)
        return 1

    try:
        if options.request_file:
            return _run_file(fd, options.request_file, pid, response_path)
        return _run_interactive(fd, pid, response_path)
    finally:
        os.close(fd)
        try:
            os.unlink(response_path)
        except FileNotFoundError:
            pass