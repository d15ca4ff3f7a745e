"""Records shared by the lending server and its clients."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

PIPE_NAME_SIZE = 50
NAME_SIZE = 100
MAX_CHARACTERS = 256
ITEMS_BUFFER = 10
MAX_BOOKS = 30
MAX_REPORTS = NAME_SIZE

AVAILABLE = "D"
BORROWED = "P"


class Operation(str, Enum):
    """Operations a client may request."""

    RETURN = "D"
    RENEW = "R"
    BORROW = "P"
    QUIT = "Q"


def _encode_field(text: str, size: int) -> bytes:
    """Encode text for a fixed-size field, leaving room for the terminator."""
    return text.encode("utf-8")[: size - 1]


def _decode_field(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="ignore")


def _encode_char(char: str) -> bytes:
    if len(char) != 1:
        raise ValueError(f"expected a single character, got {char!r}")
    return char.encode("latin-1")


@dataclass
class Request:
    """A request sent by a client over the server's pipe."""

    operation: str
    title: str = ""
    isbn: int = 0
    pid: int = 0
    pipe_response: str = ""

    LAYOUT: ClassVar[struct.Struct] = struct.Struct(
        f"=c{NAME_SIZE}s3xii{PIPE_NAME_SIZE}s2x"
    )

    def pack(self) -> bytes:
        """Return the fixed-size wire form of the request."""
        return self.LAYOUT.pack(
            _encode_char(self.operation),
            _encode_field(self.title, NAME_SIZE),
            self.isbn,
            self.pid,
            _encode_field(self.pipe_response, PIPE_NAME_SIZE),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Request:
        """Decode a request from its wire form."""
        if len(data) != cls.LAYOUT.size:
            raise ValueError(
                f"request must be {cls.LAYOUT.size} bytes, got {len(data)}"
            )
        operation, title, isbn, pid, pipe = cls.LAYOUT.unpack(data)
        return cls(
            operation=operation.decode("latin-1"),
            title=_decode_field(title),
            isbn=isbn,
            pid=pid,
            pipe_response=_decode_field(pipe),
        )


@dataclass
class Response:
    """A reply written by the server to a client's response pipe."""

    code: int
    message: str = ""

    LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"=i{MAX_CHARACTERS}s")

    def pack(self) -> bytes:
        """Return the fixed-size wire form of the response."""
        return self.LAYOUT.pack(
            self.code, _encode_field(self.message, MAX_CHARACTERS)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Response:
        """Decode a response from its wire form."""
        if len(data) != cls.LAYOUT.size:
            raise ValueError(
                f"response must be {cls.LAYOUT.size} bytes, got {len(data)}"
            )
        code, message = cls.LAYOUT.unpack(data)
        return cls(code=code, message=_decode_field(message))


@dataclass
class Copy:
    """One physical copy of a book."""

    id: int
    isbn: int
    status: str
    date: str


@dataclass
class Book:
    """A title held by the library with its copies."""

    title: str
    isbn: int
    total_copies: int
    copies: list[Copy] = field(default_factory=list)


@dataclass
class Report:
    """An entry in the library's operation history."""

    status: str
    book_name: str
    isbn: int
    copy_id: int
    date: str


@dataclass
class Library:
    """The book database and its history of operations."""

    books: list[Book] = field(default_factory=list)
    reports: list[Report] = field(default_factory=list)

    def add_report(
        self, status: str, title: str, isbn: int, copy_id: int, date: str
    ) -> Report | None:
        """Record an operation; the history holds at most MAX_REPORTS entries."""
        if len(self.reports) >= MAX_REPORTS:
            return None
        report = Report(status, title, isbn, copy_id, date)
        self.reports.append(report)
        return report

    def find_book(self, isbn: int) -> Book | None:
        """Return the first book with the given ISBN, if any."""
        return next((book for book in self.books if book.isbn == isbn), None)

    def _find_copy(self, isbn: int, status: str) -> Copy | None:
        book = self.find_book(isbn)
        if book is None:
            return None
        return next(
            (c for c in book.copies[: book.total_copies] if c.status == status),
            None,
        )

    def find_available_copy(self, isbn: int) -> Copy | None:
        """Return the first copy of the book that can be lent."""
        return self._find_copy(isbn, AVAILABLE)

    def find_borrowed_copy(self, isbn: int) -> Copy | None:
        """Return the first copy of the book that is on loan."""
        return self._find_copy(isbn, BORROWED)