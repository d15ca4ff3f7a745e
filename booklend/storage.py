"""Reading and writing the library database and report text."""

from __future__ import annotations

import os
import re

from .entities import ITEMS_BUFFER, MAX_BOOKS, Book, Copy, Library, Request

_BOOK_LINE = re.compile(r"\s*([^,]{1,99}),\s*([+-]?\d+),\s*([+-]?\d+)")
_COPY_LINE = re.compile(r"\s*([+-]?\d+),\s*(.),\s*([^\n]{1,19})")


def parse_library(text: str) -> Library:
    """Build a library from database text.

    A book line reads ``title, isbn, total`` and is followed by copy lines
    ``id, status, date``. Blank lines and lines that match neither form are
    ignored; at most MAX_BOOKS books and ITEMS_BUFFER copies per book are kept.
    """
    library = Library()
    current: Book | None = None

    def finish() -> None:
        if current is not None and len(library.books) < MAX_BOOKS:
            library.books.append(current)

    for line in text.splitlines(keepends=True):
        if line[:1] in ("\n", "\r"):
            continue
        book_match = _BOOK_LINE.match(line)
        if book_match:
            finish()
            title, isbn, total = book_match.groups()
            current = Book(title=title, isbn=int(isbn), total_copies=int(total))
            continue
        if current is None or len(current.copies) >= ITEMS_BUFFER:
            continue
        copy_match = _COPY_LINE.match(line)
        if copy_match:
            copy_id, status, date = copy_match.groups()
            current.copies.append(
                Copy(id=int(copy_id), isbn=current.isbn, status=status, date=date)
            )
    finish()
    return library


def load_library(path: str | os.PathLike[str]) -> Library:
    """Read a library database file."""
    with open(path, encoding="utf-8") as fp:
        return parse_library(fp.read())


def dump_library(library: Library) -> str:
    """Render a library in the database format read by ``parse_library``."""
    lines = []
    for book in library.books[:MAX_BOOKS]:
        if book.isbn == 0 or book.total_copies == 0:
            continue
        lines.append(f"{book.title}, {book.isbn}, {book.total_copies}\n")
        lines.extend(
            f"{copy.id}, {copy.status}, {copy.date}\n"
            for copy in book.copies[: book.total_copies]
        )
    return "".join(lines)


def save_library(library: Library, path: str | os.PathLike[str]) -> None:
    """Write a library to a database file."""
    with open(path, "w", encoding="utf-8") as fp:
        fp.write(dump_library(library))


def format_reports(library: Library) -> str:
    """Render the operation history as printed by the server."""
    lines = ["\n\nREPORTE\n", "Status, Nombre del Libro, ISBN, ejemplar, fecha\n"]
    for report in library.reports:
        if report.isbn == 0:
            break
        lines.append(
            f"{report.status}, {report.book_name}, {report.isbn}, "
            f"{report.copy_id}, {report.date}\n"
        )
    return "".join(lines)


def format_request(request: Request) -> str:
    """Render the details of a received request."""
    return (
        "\nSolicitud recibida\n"
        f"PID cliente  : {request.pid}\n"
        f"Operación    : {request.operation}\n"
        f"Título libro : {request.title}\n"
        f"ISBN         : {request.isbn}\n"
    )