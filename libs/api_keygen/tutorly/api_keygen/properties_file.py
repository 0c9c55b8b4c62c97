import os
import stat
import tempfile
from pathlib import Path

from loguru import logger

from tutorly.api_keygen.data_types import PropertiesDocument
from tutorly.api_keygen.data_types import PropertiesUpdateResult
from tutorly.api_keygen.errors import FileUnreadableError
from tutorly.api_keygen.errors import FileUnwritableError
from tutorly.api_keygen.logging import log_span
from tutorly.api_keygen.primitives import PropertyKey
from tutorly.api_keygen.primitives import Token
from tutorly.api_keygen.primitives import UpdateOutcome
from tutorly.api_keygen.primitives import WriteMode

_LINE_TERMINATOR = "\n"
# Bytes that are not valid UTF-8 (e.g. a Latin-1 comment) round-trip unchanged.
_ENCODING_ERRORS = "surrogateescape"
_KEY_LIST_SEPARATOR = ","


def parse_properties_text(text: str) -> PropertiesDocument:
    """Split file content into lines, removing only the trailing newline of each.

    A carriage return before the newline is kept as part of the line, so CRLF
    files are written back unchanged.
    """
    if not text:
        return PropertiesDocument()
    lines = text.split(_LINE_TERMINATOR)
    # A trailing newline leaves one empty element that is not a real line.
    if text.endswith(_LINE_TERMINATOR):
        lines.pop()
    return PropertiesDocument(lines=tuple(lines))


def render_properties_document(document: PropertiesDocument) -> str:
    """Join the document lines back into file content, one newline after every line."""
    return "".join(line + _LINE_TERMINATOR for line in document.lines)


def find_property_line_index(document: PropertiesDocument, key: PropertyKey) -> int | None:
    """Return the index of the first line that starts with `key=`, or None.

    Later lines with the same prefix are ignored.
    """
    prefix = f"{key}="
    for index, line in enumerate(document.lines):
        if line.startswith(prefix):
            return index
    return None


def append_token_to_document(
    document: PropertiesDocument,
    key: PropertyKey,
    token: Token,
) -> tuple[PropertiesDocument, UpdateOutcome, int]:
    """Add token to the key property, returning the new document, the outcome and the key line index.

    If the property exists, `,token` is appended to the end of its line.
    Otherwise a new `key=token` line is added at the end of the document.
    """
    index = find_property_line_index(document, key)
    if index is None:
        new_lines = document.lines + (f"{key}={token}",)
        return PropertiesDocument(lines=new_lines), UpdateOutcome.LINE_APPENDED, len(new_lines) - 1

    updated_line = document.lines[index] + _KEY_LIST_SEPARATOR + token
    new_lines = document.lines[:index] + (updated_line,) + document.lines[index + 1 :]
    return PropertiesDocument(lines=new_lines), UpdateOutcome.LINE_FOUND, index


def parse_key_list(value: str) -> tuple[str, ...]:
    """Split a comma-separated key list, trimming whitespace and dropping empty entries."""
    return tuple(entry.strip() for entry in value.split(_KEY_LIST_SEPARATOR) if entry.strip())


def read_properties_document(path: Path) -> PropertiesDocument:
    """Read a properties file as UTF-8 text, keeping any undecodable bytes as-is.

    Raises FileUnreadableError if the file cannot be opened or read.
    Never creates the file.
    """
    try:
        with open(path, "r", encoding="utf-8", errors=_ENCODING_ERRORS, newline="") as properties_file:
            text = properties_file.read()
    except FileNotFoundError as e:
        raise FileUnreadableError(path, "file does not exist") from e
    except IsADirectoryError as e:
        raise FileUnreadableError(path, "path is a directory") from e
    except OSError as e:
        raise FileUnreadableError(path, e.strerror or str(e)) from e
    return parse_properties_text(text)


def read_registered_keys(path: Path, key: PropertyKey) -> tuple[str, ...]:
    """Return the keys listed in the first `key=` line of the file, or () if there is none."""
    document = read_properties_document(path)
    index = find_property_line_index(document, key)
    if index is None:
        return ()
    # Tolerate a CRLF file: the carriage return is not part of the last key.
    value = document.lines[index][len(key) + 1 :].rstrip("\r")
    return parse_key_list(value)


def _write_in_place(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", errors=_ENCODING_ERRORS, newline="") as properties_file:
        properties_file.write(content)


def _write_atomically(path: Path, content: str) -> None:
    """Write content to a sibling temp file, fsync it, then rename it over path.

    The permissions of the existing file are carried over to the new one. The
    temp file is removed again if any step fails.
    """
    existing_mode: int | None = None
    try:
        existing_mode = path.stat().st_mode
    except FileNotFoundError:
        pass

    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            errors=_ENCODING_ERRORS,
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())

        if existing_mode is not None:
            os.chmod(tmp_path, stat.S_IMODE(existing_mode))
        os.replace(tmp_path, path)
    except OSError:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise


def write_properties_document(
    path: Path,
    document: PropertiesDocument,
    write_mode: WriteMode = WriteMode.IN_PLACE,
) -> None:
    """Write the document back to path.

    Raises FileUnwritableError on failure. With WriteMode.IN_PLACE the file may
    already have been truncated when the error is raised. With WriteMode.ATOMIC
    the original file is left untouched.
    """
    content = render_properties_document(document)
    try:
        match write_mode:
            case WriteMode.IN_PLACE:
                _write_in_place(path, content)
            case WriteMode.ATOMIC:
                _write_atomically(path, content)
            case _:
                raise ValueError(f"Unknown write mode: {write_mode}")
    except OSError as e:
        raise FileUnwritableError(path, e.strerror or str(e)) from e


def add_token_to_properties_file(
    path: Path,
    key: PropertyKey,
    token: Token,
    write_mode: WriteMode = WriteMode.IN_PLACE,
) -> PropertiesUpdateResult:
    """Append token to the comma-separated `key` property of the file at path.

    All other lines are preserved in order. If the property is missing a new
    line is added at the end of the file and a warning is logged; the update
    still succeeds. No locking is done, so concurrent runs against the same
    file must be serialized by the caller.
    """
    with log_span("Reading properties file {}", path):
        document = read_properties_document(path)

    updated_document, outcome, line_index = append_token_to_document(document, key, token)
    if outcome == UpdateOutcome.LINE_APPENDED:
        logger.warning("{} line not found in {}, adding new line", key, path)
    else:
        logger.debug("Found {} on line {}", key, line_index + 1)

    with log_span("Writing properties file {} ({})", path, write_mode.lower()):
        write_properties_document(path, updated_document, write_mode)

    return PropertiesUpdateResult(
        path=path,
        property_key=key,
        outcome=outcome,
        line_index=line_index,
    )
