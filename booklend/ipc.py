"""Named-pipe transport for requests and their replies."""

from __future__ import annotations

import os

from .entities import Request, Response

OK = 200


def read_request(fd: int) -> Request | None:
    """Read one request from ``fd``.

    Returns None when the pipe has nothing to offer: no writer, no data yet
    on a non-blocking descriptor, or only part of a request.
    """
    try:
        data = os.read(fd, Request.LAYOUT.size)
    except BlockingIOError:
        return None
    if len(data) != Request.LAYOUT.size:
        return None
    return Request.from_bytes(data)


def send_response(request: Request, message: str) -> Response:
    """Write a success reply carrying ``message`` to the request's reply pipe.

    Returns the response as it went over the wire. Raises OSError if the
    pipe cannot be opened or the reply is not written whole.
    """
    payload = Response(OK, message).pack()
    fd = os.open(request.pipe_response, os.O_WRONLY)
    try:
        written = os.write(fd, payload)
    finally:
        os.close(fd)
    if written != len(payload):
        raise OSError(
            f"short write to {request.pipe_response!r}: "
            f"{written} of {len(payload)} bytes"
        )
    return Response.from_bytes(payload)