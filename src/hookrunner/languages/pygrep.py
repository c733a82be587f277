"""Regex search used by ``language: pygrep`` hooks.

Invoked as ``python -m hookrunner.languages.pygrep [flags] PATTERN FILES...``.
Exit code 1 when the pattern is found (or, with ``--negate``, when a file
does not contain it).
"""

import re
import sys
from typing import BinaryIO, List, Optional, Pattern

import typer

app = typer.Typer(add_completion=False)


def _write(out: BinaryIO, filename: str, line_no: int, line: bytes) -> None:
    out.write(f"{filename}:{line_no}:".encode())
    out.write(line.rstrip(b"\r\n") + b"\n")


def grep_lines(pattern: Pattern[bytes], filename: str, out: BinaryIO) -> int:
    found = 0
    with open(filename, "rb") as f:
        for line_no, line in enumerate(f, start=1):
            if pattern.search(line):
                found = 1
                _write(out, filename, line_no, line)
    return found


def grep_multiline(pattern: Pattern[bytes], filename: str, out: BinaryIO) -> int:
    with open(filename, "rb") as f:
        contents = f.read()
    match = pattern.search(contents)
    if match is None:
        return 0
    line_no = contents.count(b"\n", 0, match.start()) + 1
    out.write(f"{filename}:{line_no}:".encode())
    out.write(match.group().rstrip(b"\r\n") + b"\n")
    return 1


def grep_negated(pattern: Pattern[bytes], filename: str, out: BinaryIO, multiline: bool) -> int:
    with open(filename, "rb") as f:
        contents = f.read()
    if multiline:
        found = pattern.search(contents) is not None
    else:
        found = any(pattern.search(line) for line in contents.splitlines())
    if found:
        return 0
    out.write(f"{filename}\n".encode())
    return 1


@app.command()
def main(
    pattern: str = typer.Argument(..., help="Python regular expression"),
    filenames: Optional[List[str]] = typer.Argument(None),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i"),
    multiline: bool = typer.Option(False, "--multiline"),
    negate: bool = typer.Option(False, "--negate"),
):
    flags = re.IGNORECASE if ignore_case else 0
    if multiline:
        flags |= re.MULTILINE | re.DOTALL
    compiled = re.compile(pattern.encode(), flags)

    out = sys.stdout.buffer
    retv = 0
    for filename in filenames or []:
        if negate:
            retv |= grep_negated(compiled, filename, out, multiline)
        elif multiline:
            retv |= grep_multiline(compiled, filename, out)
        else:
            retv |= grep_lines(compiled, filename, out)
    out.flush()
    raise typer.Exit(retv)


if __name__ == "__main__":
    app()
