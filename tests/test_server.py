import io
from datetime import datetime

import pytest

from booklend.entities import PIPE_NAME_SIZE, Book, Copy, Library, Response, Request
from booklend.server import (
    BORROW_ACCEPTED,
    BORROW_REJECTED,
    RENEW_ACCEPTED,
    RETURN_ACCEPTED,
    ServerOptions,
    handle_request,
    main,
    parse_args,
)
from booklend.storage import dump_library
from booklend.workers import ServerState

NOW = datetime(2025, 5, 20, 9, 0)


def make_library(first_status="D"):
    return Library(
        books=[
            Book(
                "Rayuela",
                200,
                2,
                [Copy(1, 200, first_status, "01-01-2025"), Copy(2, 200, "P", "02-01-2025")],
            )
        ]
    )


def make_state(library=None, output_path=None):
    return ServerState(
        library=library or make_library(), out=io.StringIO(), output_path=output_path
    )


def reply_file(tmp_path):
    target = tmp_path / "reply"
    target.touch()
    return target


def read_reply(target):
    return Response.from_bytes(target.read_bytes())


def test_parse_args_all_options():
    options = parse_args(["-p", "pipe", "-f", "db.txt", "-v", "-s", "out.txt"])
    assert options == ServerOptions("pipe", "db.txt", "out.txt", True)


def test_parse_args_defaults():
    options = parse_args(["-p", "pipe", "-f", "db.txt"])
    assert options.output_file is None
    assert options.verbose is False


def test_parse_args_too_few_arguments():
    with pytest.raises(ValueError):
        parse_args(["-p", "pipe"])


def test_parse_args_truncates_pipe_name():
    options = parse_args(["-p", "x" * 80, "-f", "db.txt"])
    assert options.pipe == "x" * (PIPE_NAME_SIZE - 1)


def test_parse_args_ignores_unknown_arguments():
    options = parse_args(["-x", "-p", "a", "-f", "b"])
    assert (options.pipe, options.data_file) == ("a", "b")


def test_borrow_lends_available_copy(tmp_path):
    target = reply_file(tmp_path)
    state = make_state()
    handle_request(state, Request("P", "Rayuela", 200, 3, str(target)), NOW)
    copy = state.library.books[0].copies[0]
    assert copy.status == "P"
    assert copy.date == "20-05-2025"
    assert [r.status for r in state.library.reports] == ["P"]
    assert read_reply(target) == Response(200, BORROW_ACCEPTED)


def test_borrow_rejected_without_available_copy(tmp_path):
    target = reply_file(tmp_path)
    state = make_state(make_library(first_status="P"))
    handle_request(state, Request("P", "Rayuela", 200, 3, str(target)), NOW)
    assert read_reply(target) == Response(200, BORROW_REJECTED)
    assert state.library.reports == []


def test_return_is_answered_and_queued(tmp_path):
    target = reply_file(tmp_path)
    state = make_state()
    state.take_menu()
    request = Request("D", "Rayuela", 200, 4, str(target))
    handle_request(state, request, NOW)
    assert read_reply(target) == Response(200, RETURN_ACCEPTED)
    assert state.buffer.get() == request
    assert state.take_menu() is True


def test_renewal_is_answered_and_queued(tmp_path):
    target = reply_file(tmp_path)
    state = make_state()
    request = Request("R", "Rayuela", 200, 4, str(target))
    handle_request(state, request, NOW)
    assert read_reply(target) == Response(200, RENEW_ACCEPTED)
    assert len(state.buffer) == 1


def test_return_not_queued_when_reply_fails(tmp_path, capsys):
    state = make_state()
    handle_request(state, Request("D", "Rayuela", 200, 5, str(tmp_path / "no")), NOW)
    assert len(state.buffer) == 0
    assert "No se pudo enviar la respuesta al cliente 5" in capsys.readouterr().err


def test_quit_saves_database(tmp_path):
    target = tmp_path / "salida.txt"
    state = make_state(output_path=str(target))
    handle_request(state, Request("Q", "Salir", 0, 9), NOW)
    assert target.read_text(encoding="utf-8") == dump_library(state.library)
    assert "Cliente 9 ha terminado sus solicitudes." in state.out.getvalue()


def test_quit_without_output_path_writes_nothing(tmp_path):
    state = make_state()
    handle_request(state, Request("Q", "Salir", 0, 9), NOW)
    assert list(tmp_path.iterdir()) == []
    assert "guardada" not in state.out.getvalue()


def test_main_rejects_too_few_arguments(capsys):
    assert main([]) == 1
    assert "Uso correcto" in capsys.readouterr().err