"""
Utility functions for iac-dlp.

Includes encoding detection, safe file reading, line ending normalization,
sentinel headers and line numbering for multi-file blobs.
"""

from __future__ import annotations

import codecs
from pathlib import Path

import chardet

from .config import FILE_HEADER_PREFIX, FILE_HEADER_SUFFIX


def file_header(relative_path: str) -> str:
    """Build the sentinel header line for one source unit."""
    return f"{FILE_HEADER_PREFIX} {relative_path} {FILE_HEADER_SUFFIX}"


def is_file_header(line: str) -> bool:
    """Check if a line is a sentinel header."""
    return line.strip().startswith(FILE_HEADER_PREFIX)


def add_line_numbers(text: str) -> str:
    """
    Prefix every line with its line number.

    Numbering restarts at 1 after each sentinel header line, so numbers match
    the lines of the individual file. Header lines themselves are not numbered.

    Args:
        text: Blob of one or more source units

    Returns:
        Text with ``"<n> | "`` prefixes
    """
    numbered = []
    current_line = 1
    for line in text.split("\n"):
        if is_file_header(line):
            current_line = 1
            numbered.append(line)
            continue
        numbered.append(f"{current_line} | {line}")
        current_line += 1
    return "\n".join(numbered)


# Byte-order marks seen in hand-edited IaC files (Windows editors, PowerShell output)
_BOM_ENCODINGS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

# Control bytes that legitimately occur in config text
_TEXT_CONTROL_BYTES = frozenset(b"\t\n\r\f")

# chardet only needs a prefix to guess a single-byte code page
_CHARDET_SAMPLE = 64 * 1024


def bom_encoding(data: bytes) -> str | None:
    """Encoding announced by a leading byte-order mark, if any."""
    for bom, encoding in _BOM_ENCODINGS:
        if data.startswith(bom):
            return encoding
    return None


def detect_encoding(data: bytes) -> str:
    """
    Pick the codec for the raw bytes of a config file.

    A byte-order mark wins. Otherwise UTF-8 is assumed when the bytes decode
    cleanly, and chardet guesses between legacy code pages. latin-1 is the
    last resort since it decodes any byte sequence.
    """
    encoding = bom_encoding(data)
    if encoding:
        return encoding

    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        guess = chardet.detect(data[:_CHARDET_SAMPLE]).get("encoding")
        return guess.lower() if guess else "latin-1"
    return "utf-8"


def is_binary_file(file_path: Path, sample_size: int = 8192) -> bool:
    """
    Check if a file looks like binary data rather than config text.

    Files that cannot be opened are treated as binary and skipped.
    """
    try:
        with open(file_path, "rb") as f:
            sample = f.read(sample_size)
    except OSError:
        return True

    if bom_encoding(sample):
        return False
    if b"\x00" in sample:
        return True

    # Terraform state blobs, archives and images carry stray control bytes
    control = sum(1 for b in sample if b < 0x20 and b not in _TEXT_CONTROL_BYTES)
    return control * 10 > len(sample)


def read_file_safe(file_path: Path, encoding: str | None = None) -> tuple[str, str]:
    """
    Read a config file as text.

    The file is read once; undecodable bytes become replacement characters
    and line endings are normalized to LF.

    Args:
        file_path: Path to the file
        encoding: Codec to use (None to detect from the bytes)

    Returns:
        Tuple of (content, encoding_used)

    Raises:
        OSError: If the file cannot be read
    """
    data = Path(file_path).read_bytes()
    encoding = encoding or detect_encoding(data)
    try:
        content = data.decode(encoding, errors="replace")
    except LookupError:
        encoding = "utf-8"
        content = data.decode(encoding, errors="replace")
    return normalize_line_endings(content), encoding


def normalize_path(path: str) -> str:
    """Normalize a path for consistent comparison (use forward slashes)."""
    return path.replace("\\", "/")


def normalize_line_endings(content: str) -> str:
    """
    Normalize line endings to LF (Unix-style).

    Handles CRLF (Windows), CR (old Mac), and mixed line endings.
    """
    return content.replace("\r\n", "\n").replace("\r", "\n")
