from __future__ import annotations

import os
import re
import stat
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import EnvFileError


# [indent][export ]NAME[ws]=[ws]<rest>
_ASSIGN_RE = re.compile(
    r"^(?P<prefix>[ \t]*(?:export[ \t]+)?)"
    r"(?P<name>[A-Za-z_][A-Za-z0-9_.\-]*)"
    r"(?P<separator>[ \t]*=[ \t]*)"
    r"(?P<rest>.*)$",
    re.DOTALL,
)
_INLINE_COMMENT_RE = re.compile(r"[ \t]+#")
_TRAILER_RE = re.compile(r"^[ \t]*(?:#.*)?$", re.DOTALL)
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*\Z")
_QUOTES = ("'", '"')


@dataclass
class Blank:
    raw: str

    def render(self) -> str:
        return self.raw


@dataclass
class Comment:
    raw: str

    def render(self) -> str:
        return self.raw


@dataclass
class Malformed:
    raw: str

    def render(self) -> str:
        return self.raw


@dataclass
class Assignment:
    """One ``NAME=value`` line split into its formatting pieces.

    ``value`` is the payload between the quotes (or the bare text for unquoted
    values); everything else is kept exactly as read so that rendering the record
    reproduces the source line.
    """

    name: str
    value: str
    prefix: str = ""
    separator: str = "="
    quote: str = ""
    suffix: str = ""
    newline: str = "\n"

    @property
    def exported(self) -> bool:
        return self.prefix.strip() == "export"

    def render(self) -> str:
        return f"{self.prefix}{self.name}{self.separator}{self.quote}{self.value}{self.quote}{self.suffix}{self.newline}"


Record = Union[Assignment, Comment, Blank, Malformed]


def _split_lines(text: str) -> List[str]:
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def _split_newline(line: str):
    if line.endswith("\r\n"):
        return line[:-2], "\r\n"
    if line.endswith("\n"):
        return line[:-1], "\n"
    return line, ""


def _find_closing_quote(rest: str, quote: str) -> int:
    i = 1
    while i < len(rest):
        ch = rest[i]
        if ch == "\\" and quote == '"':
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


def parse_line(line: str) -> Record:
    """Classify one physical line (including its line terminator)."""
    body, newline = _split_newline(line)
    stripped = body.strip()
    if not stripped:
        return Blank(line)
    if stripped.startswith("#"):
        return Comment(line)

    m = _ASSIGN_RE.match(body)
    if m is None:
        return Malformed(line)
    prefix, name, separator, rest = m.group("prefix", "name", "separator", "rest")

    if rest[:1] in _QUOTES:
        quote = rest[0]
        close = _find_closing_quote(rest, quote)
        if close < 0:
            return Malformed(line)
        suffix = rest[close + 1:]
        if not _TRAILER_RE.match(suffix):
            return Malformed(line)
        value = rest[1:close]
    elif rest.startswith("#") and separator[-1] in " \t":
        # NAME= # comment: the gap before "#" belongs to the comment
        head = separator.rstrip(" \t")
        value, quote, suffix = "", "", separator[len(head):] + rest
        separator = head
    else:
        quote = ""
        c = _INLINE_COMMENT_RE.search(rest)
        head = rest[: c.start()] if c else rest
        value = head.rstrip(" \t")
        suffix = rest[len(value):]

    return Assignment(
        name=name,
        value=value,
        prefix=prefix,
        separator=separator,
        quote=quote,
        suffix=suffix,
        newline=newline,
    )


@dataclass
class EnvDocument:
    """Ordered line records of a .env file.

    ``serialize(parse(text)) == text`` for any input; records that are not touched
    by :meth:`set_value` render exactly as they were read.
    """

    records: List[Record] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "EnvDocument":
        return cls([parse_line(line) for line in _split_lines(text)])

    def serialize(self) -> str:
        return "".join(rec.render() for rec in self.records)

    def __str__(self) -> str:
        return self.serialize()

    def assignments(self) -> List[Assignment]:
        return [rec for rec in self.records if isinstance(rec, Assignment)]

    def names(self) -> List[str]:
        """Assigned names in first-seen order, without duplicates."""
        seen: List[str] = []
        for rec in self.assignments():
            if rec.name not in seen:
                seen.append(rec.name)
        return seen

    def find(self, name: str) -> Optional[Tuple[int, Assignment]]:
        """Position and record of the last assignment of ``name`` (later lines shadow earlier ones)."""
        for idx in range(len(self.records) - 1, -1, -1):
            rec = self.records[idx]
            if isinstance(rec, Assignment) and rec.name == name:
                return idx, rec
        return None

    def get_value(self, name: str) -> Optional[str]:
        found = self.find(name)
        if found is None:
            return None
        return found[1].value

    def _preferred_newline(self) -> str:
        for rec in self.records:
            nl = rec.newline if isinstance(rec, Assignment) else _split_newline(rec.raw)[1]
            if nl:
                return nl
        return "\n"

    def set_value(self, name: str, new_raw_value: str) -> "EnvDocument":
        """Replace the payload of the last ``name`` assignment, or append one.

        Quoting, prefix, separator and inline comment of an existing record are kept.
        Raises ValueError if the rewritten line would not read back as ``new_raw_value``
        (line breaks, the record's own quote, a trailing backslash inside double quotes,
        `` #`` or surrounding whitespace in an unquoted value, and so on).
        """
        if "\n" in new_raw_value or "\r" in new_raw_value:
            raise ValueError(f"value for '{name}' must not contain line breaks")

        found = self.find(name)
        if found is not None:
            idx, rec = found
            updated = replace(rec, value=new_raw_value)
            _check_rewrite(updated)
            self.records[idx] = updated
            return self

        if _NAME_RE.match(name) is None:
            raise ValueError(f"invalid variable name: {name!r}")
        newline = self._preferred_newline()
        appended = Assignment(name=name, value=new_raw_value, newline=newline)
        _check_rewrite(appended)
        if self.records:
            last = self.records[-1]
            if isinstance(last, Assignment):
                if not last.newline:
                    last.newline = newline
            elif not _split_newline(last.raw)[1]:
                last.raw += newline
        self.records.append(appended)
        return self


def _check_rewrite(rec: Assignment) -> None:
    reread = parse_line(rec.render())
    if not (
        isinstance(reread, Assignment)
        and reread.name == rec.name
        and reread.quote == rec.quote
        and reread.value == rec.value
    ):
        quoting = f"{rec.quote}-quoted" if rec.quote else "unquoted"
        raise ValueError(f"value for '{rec.name}' cannot be stored in an {quoting} assignment without changing its meaning")


def parse(document_text: str) -> EnvDocument:
    return EnvDocument.parse(document_text)


def serialize(doc: EnvDocument) -> str:
    return doc.serialize()


def get_value(doc: EnvDocument, name: str) -> Optional[str]:
    return doc.get_value(name)


def set_value(doc: EnvDocument, name: str, new_raw_value: str) -> EnvDocument:
    return doc.set_value(name, new_raw_value)


# -------- File plumbing --------

def read_env_file(path: Union[str, Path], *, missing_ok: bool = False) -> EnvDocument:
    """Load a whole .env file.

    Args:
        path: File to read.
        missing_ok: Return an empty document instead of failing when the file
            does not exist (used by ``set``).
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as fh:
            text = fh.read()
    except FileNotFoundError:
        if missing_ok:
            return EnvDocument()
        raise EnvFileError(f"failed to read env file {path}: file not found") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise EnvFileError(f"failed to read env file {path}: {exc}") from None
    return EnvDocument.parse(text)


def write_env_file(path: Union[str, Path], doc: EnvDocument) -> None:
    """Atomically replace ``path`` with the serialized document.

    The text goes to a temporary file beside the target which is then swapped in
    with ``os.replace``; an existing file's permission bits are carried over.
    """
    target = Path(path)
    data = doc.serialize()
    try:
        mode = stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        mode = None
    except OSError as exc:
        raise EnvFileError(f"failed to write env file {target}: {exc}") from None

    directory = target.parent if str(target.parent) else Path(".")
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(directory))
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, str(target))
        tmp_path = None
    except OSError as exc:
        raise EnvFileError(f"failed to write env file {target}: {exc}") from None
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


__all__ = [
    "Assignment",
    "Comment",
    "Blank",
    "Malformed",
    "EnvDocument",
    "parse_line",
    "parse",
    "serialize",
    "get_value",
    "set_value",
    "read_env_file",
    "write_env_file",
]
