#!/usr/bin/env python3
"""
Name: teerr
Description: copy standard input to standard output and standard error
License:

A pipe fitting in the spirit of 'tee'. Every byte read from standard input
is written, unmodified and in order, to standard output and to a second
destination: standard error by default, or an already-open file descriptor
given as the only argument. It replaces the shell construct

    tee >(cat >&2)

with fewer keystrokes and one process instead of two.
"""

import sys
import os
import argparse

__version__ = "1.0.0"
# Stamped by the release process.
__commit__ = "none"
__date__ = "unknown"

# --- Exit Codes ---
EX_SUCCESS = 0
EX_FAILURE = 1
EX_INTERRUPTED = 130

BUFLEN = 32 * 1024

STDIN_FILENO = 0
STDOUT_FILENO = 1
STDERR_FILENO = 2

EPILOG = """\
arguments:
  fd    file descriptor to write to instead of stderr (default: 2)

examples:
  value=$(command | teerr)     # capture and echo to stderr
  generate | teerr | consume   # observe pipeline flow
  command | teerr 3            # write to fd 3 instead of stderr

teerr is equivalent to: tee >(cat >&2)
"""


class CopyError(Exception):
    """Base class for failures that end a copy before end of input."""
    def __init__(self, message, error=None, copied=0):
        super().__init__(message)
        self.error = error
        # Bytes delivered to both sinks before the failure.
        self.copied = copied


class ReadError(CopyError):
    """The source reported an error other than a clean end of stream."""
    def __init__(self, error=None, copied=0):
        reason = error.strerror if isinstance(error, OSError) and error.strerror else error
        super().__init__(f"read error: {reason}", error, copied)


class WriteError(CopyError):
    """One of the two sinks rejected a write or stopped making progress."""
    def __init__(self, index, name, error=None, copied=0):
        reason = error.strerror if isinstance(error, OSError) and error.strerror else error
        super().__init__(f"write error on {name}: {reason}", error, copied)
        self.index = index
        self.name = name


class FdReader:
    """Reads straight from a file descriptor, one read(2) per call."""
    def __init__(self, fd, name=None):
        self.fd = fd
        self.name = name or f"fd {fd}"

    def read(self, size):
        return os.read(self.fd, size)


class FdWriter:
    """
    Writes straight to a file descriptor, one write(2) per call.

    The descriptor is not checked when the writer is created, so a
    descriptor that is closed or read-only only fails on the first write.
    The descriptor is never closed.
    """
    def __init__(self, fd, name=None):
        self.fd = fd
        self.name = name or f"fd {fd}"

    def write(self, data):
        return os.write(self.fd, data)


def parse_fd(token):
    """
    Parses a descriptor token: ASCII decimal digits only, nothing else.
    Returns the descriptor number, or None if the token is not valid.
    """
    if not token:
        return None
    n = 0
    for char in token:
        if char < '0' or char > '9':
            return None
        n = n * 10 + (ord(char) - ord('0'))
    return n


def select_sinks(token, stdout, stderr, open_fd=FdWriter):
    """
    Returns the pair of sinks for one copy: stdout first, then either stderr
    or the descriptor named by token. A token that does not parse falls back
    to stderr without complaint.
    """
    fd = parse_fd(token) if token is not None else None
    if fd is None or fd == STDERR_FILENO:
        return (stdout, stderr)
    return (stdout, open_fd(fd))


def sink_name(sink, index):
    return getattr(sink, 'name', None) or ("stdout" if index == 0 else "target")


def write_all(sink, index, data, copied):
    """Writes data to sink in full, finishing short writes."""
    view = memoryview(data)
    while view:
        try:
            n = sink.write(view)
        except Exception as e:
            raise WriteError(index, sink_name(sink, index), e, copied) from e
        if not n:
            # None means the sink would block, 0 means it took nothing.
            raise WriteError(index, sink_name(sink, index), "no progress", copied)
        view = view[n:]


def tee_copy(source, sinks, buflen=BUFLEN):
    """
    Copies source to both sinks until end of stream.

    Each chunk is written in full to the first sink and then to the second
    before the next read. Returns the number of bytes copied. Raises
    ReadError or WriteError on the first failure; nothing else is written
    after it, and bytes already written stay where they are.
    """
    sinks = tuple(sinks)
    if len(sinks) != 2:
        raise ValueError(f"expected exactly 2 sinks, got {len(sinks)}")
    if buflen <= 0:
        raise ValueError(f"buffer length must be positive, got {buflen}")

    copied = 0
    while True:
        try:
            chunk = source.read(buflen)
        except Exception as e:
            raise ReadError(e, copied) from e
        if chunk is None:
            raise ReadError("no data available on a non-blocking source", copied)
        if not chunk:
            return copied

        for index, sink in enumerate(sinks):
            write_all(sink, index, chunk, copied)
        copied += len(chunk)


def buflen_from_env():
    """Chunk size from TEERR_BUFLEN, or the default if unset or invalid."""
    n = parse_fd(os.environ.get('TEERR_BUFLEN', ''))
    return n if n else BUFLEN


VERSION_FLAGS = ('-V', '--version', 'version')
HELP_FLAGS = ('-h', '--help', 'help')


def preprocess_argv(args_list):
    """
    Only the first argument matters. The six exact spellings of version and
    help become --version and --help; anything else, flag-shaped or not, is
    handed over as the positional descriptor token.
    """
    if not args_list:
        return []
    first = args_list[0]
    if first in VERSION_FLAGS:
        return ['--version']
    if first in HELP_FLAGS:
        return ['--help']
    return ['--', first]


def main():
    """Parses arguments and copies stdin to stdout and the second sink."""
    parser = argparse.ArgumentParser(
        prog="teerr",
        description="Copy standard input to standard output and standard error.",
        usage="%(prog)s [fd]\n       %(prog)s --version\n       %(prog)s --help",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'%(prog)s {__version__} ({__commit__}, {__date__})'
    )
    parser.add_argument(
        'fd',
        nargs='?',
        default=None,
        help=argparse.SUPPRESS
    )

    args = parser.parse_args(preprocess_argv(sys.argv[1:]))
    program_name = parser.prog

    stdout = FdWriter(STDOUT_FILENO, "stdout")
    stderr = FdWriter(STDERR_FILENO, "stderr")
    sinks = select_sinks(args.fd, stdout, stderr)

    try:
        tee_copy(FdReader(STDIN_FILENO, "stdin"), sinks, buflen_from_env())
    except CopyError as e:
        # With stderr carrying the data, the exit status is the only report.
        if sinks[1] is not stderr:
            try:
                print(f"{program_name}: {e}", file=sys.stderr)
            except OSError:
                pass
        sys.exit(EX_FAILURE)
    except KeyboardInterrupt:
        sys.exit(EX_INTERRUPTED)

    sys.exit(EX_SUCCESS)

if __name__ == "__main__":
    main()
