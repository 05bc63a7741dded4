"""File writer that persists documents to the local filesystem."""

from __future__ import annotations

import codecs
import io
import logging
import tokenize
from pathlib import Path

from importfix.errors import FileWriteError
from importfix.services.base import FileWriter

logger = logging.getLogger(__name__)


def detect_encoding(data: bytes, default: str = "utf-8") -> str:
    """Work out which encoding a Python source file is stored in.

    When ``default`` is UTF-8, a byte order mark or a PEP 263 coding
    cookie in ``data`` wins: a BOM yields "utf-8-sig", so decoding strips
    it and encoding writes it back. Any other ``default`` is used as is.

    Args:
        data: Raw file contents (only the first two lines are inspected).
        default: Configured source encoding.

    Returns:
        Name of the codec to read and write the file with.
    """
    if codecs.lookup(default).name != "utf-8":
        return default
    try:
        encoding, _ = tokenize.detect_encoding(io.BytesIO(data).readline)
    except SyntaxError:
        # Bad cookie or undecodable first lines; let the decode report it
        return default
    return encoding


class DiskFileWriter(FileWriter):
    """Writes document text to disk, creating parent directories as needed.

    An existing file keeps the encoding it was stored in, including a
    UTF-8 byte order mark. Line endings are written exactly as they appear
    in the text.

    Attributes:
        encoding: Encoding used for new files and files without a BOM or
            coding cookie.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def write(self, path: Path, text: str) -> None:
        try:
            encoding = self.encoding
            if path.exists():
                encoding = detect_encoding(path.read_bytes(), self.encoding)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(text.encode(encoding))
        except (OSError, UnicodeEncodeError, LookupError) as e:
            raise FileWriteError(str(path), str(e)) from e
        logger.debug("Wrote %d characters to %s (%s)", len(text), path, encoding)
