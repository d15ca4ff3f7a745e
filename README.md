# booklend

A small book lending service for one machine. A server keeps a database of
books and their copies in memory and takes requests through a named pipe
(FIFO). A client sends loan, return and renewal requests and shows each reply.
It needs a POSIX system with named pipes. The messages on the console are in
Spanish.

## Installation

```
pip install .
```

This installs two commands, `booklend-server` and `booklend-client`.

## Database file

The server reads its database from a plain text file. Each book has a line
giving its title, its ISBN and its number of copies. One line for each copy
follows, giving the copy id, its status (`D` means available and `P` means on
loan) and a date:

```
Cien años de soledad, 1001, 2
1, D, 01-05-2025
2, P, 03-05-2025
El túnel, 1002, 1
1, D, 02-05-2025
```

Blank lines and lines that match neither form are skipped. At most 30 books
are kept, and at most 10 copies for each book. Dates written by the server
have the form `DD-MM-YYYY`.

## Running the server

```
booklend-server -p ../ipc/pipeReceptor -f filedatos.txt [-v] [-s filesalida.txt]
```

- `-p` is the request pipe. If that path does not exist, the server creates
  the pipe `../ipc/pipeReceptor` (relative to the working directory) and reads
  from that instead. If the path exists but is not a pipe, the server stops
  with an error.
- `-f` is the database file to load. It is required.
- `-v` prints every request the server receives.
- `-s` is the file the database is written to each time a client sends `Q`,
  and when the server is stopped with the `s` command.

The console shows a menu. Type `r` to print the log of operations, or `s` to
save the database (when `-s` was given) and stop the server. Ctrl-C also
stops it.

Requests are handled like this:

- `P` (loan): the first available copy is marked as on loan with today's date,
  and the client is told whether the loan was accepted or rejected.
- `D` (return) and `R` (renewal): the client is told at once that the request
  was accepted, and the request is queued for a background worker. A return
  marks the first copy on loan as available with today's date; a renewal sets
  its date to seven days from now. If the book has no copy on loan, the worker
  prints that the request was rejected.
- `Q`: the client has finished; the database is saved if `-s` was given.

Every loan, return and renewal is added to the log of operations (at most 100
entries).

## Running the client

Interactive menu:

```
booklend-client -p ../ipc/pipeReceptor
```

Choose 1 to return a book, 2 to renew it, 3 to borrow it, or 0 to quit, then
give the title and the ISBN.

Batch mode, with one request per line of a file:

```
booklend-client -i file.txt -p ../ipc/pipeReceptor
```

Each line of the request file holds the operation, the title and the ISBN:

```
P, Cien años de soledad, 1001
R, Cien años de soledad, 1001
D, Cien años de soledad, 1001
Q, Salir, 0
```

Reading stops at the first line that does not have this form. The client
waits for a reply to every request except `Q`, and after the last line it
sends a `Q` request of its own.

The server must be running before the client starts. The client creates its
reply pipe at `../ipc/response_<pid>` (relative to the working directory) and
removes it when it exits.

## Library use

The parts can also be used directly from Python:

```python
from booklend.storage import load_library, dump_library, format_reports

library = load_library("filedatos.txt")
copy = library.find_available_copy(1001)
print(dump_library(library))
print(format_reports(library))
```

- `booklend.entities` holds `Request` and `Response` with their fixed-size
  wire forms (`pack`, `from_bytes`), and `Library`, `Book`, `Copy` and
  `Report`.
- `booklend.storage` reads and writes the database format (`parse_library`,
  `load_library`, `dump_library`, `save_library`).
- `booklend.buffer.RequestBuffer` is the bounded, thread-safe queue between
  the request reader and the update worker.
- `booklend.ipc` has `read_request` and `send_response` for the pipes.

## What it does not do

- It works only between processes on the same machine; there is no network
  transport.
- The log of operations is kept in memory only and is lost when the server
  stops. Only the book database is written to disk, and only when `-s` is given.