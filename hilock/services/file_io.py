"""
Reading documents to highlight.

Handles:
- Encoding detection
- Line ending normalization, so match offsets count one character per
  line break as the editor widgets do
- Refusing binary files
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional

import chardet


class LineEnding(Enum):
    """Line ending style."""
    LF = auto()      # Unix: \n
    CRLF = auto()    # Windows: \r\n
    CR = auto()      # Old Mac: \r
    MIXED = auto()   # Mixed endings
    NONE = auto()    # No line endings


@dataclass
class TextDocument:
    """A decoded document with its original encoding details."""
    text: str
    encoding: str
    line_ending: LineEnding
    bom: bool = False


class BinaryFileError(ValueError):
    """The file does not look like text."""


class DocumentReader:
    """Reads text files with automatic encoding detection."""

    BOMS = [
        (b'\xef\xbb\xbf', 'utf-8-sig'),
        (b'\xff\xfe', 'utf-16-le'),
        (b'\xfe\xff', 'utf-16-be'),
    ]

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        fallback_encoding: str = 'latin-1',
        binary_check_size: int = 8192
    ):
        self.default_encoding = default_encoding
        self.fallback_encoding = fallback_encoding
        self.binary_check_size = binary_check_size

    def read(self, path: Path | str, encoding: Optional[str] = None) -> TextDocument:
        """
        Read and decode a file.

        Raises:
            OSError: the file cannot be read
            BinaryFileError: the file is not text
        """
        raw = Path(path).read_bytes()
        return self.decode(raw, encoding)

    def decode(self, raw: bytes, encoding: Optional[str] = None) -> TextDocument:
        bom = False
        detected = encoding
        for marker, name in self.BOMS:
            if raw.startswith(marker):
                bom = True
                detected = name
                break

        if not bom and self.is_binary(raw):
            raise BinaryFileError("File appears to be binary")

        detected = detected or self.detect_encoding(raw)
        try:
            text = raw.decode(detected)
        except (UnicodeDecodeError, LookupError):
            logging.warning(f"DocumentReader - Cannot decode as {detected}, using {self.fallback_encoding}")
            text = raw.decode(self.fallback_encoding, errors='replace')
            detected = self.fallback_encoding

        line_ending = self.detect_line_ending(text)
        text = text.replace('\r\n', '\n').replace('\r', '\n')

        return TextDocument(text=text, encoding=detected, line_ending=line_ending, bom=bom)

    def is_binary(self, raw: bytes) -> bool:
        chunk = raw[:self.binary_check_size]
        if b'\x00' in chunk:
            return True

        # Ratio of control bytes
        non_text = sum(1 for b in chunk if b < 9 or (13 < b < 32))
        return len(chunk) > 0 and non_text / len(chunk) > 0.3

    def detect_encoding(self, raw: bytes) -> str:
        """Detect encoding of content."""
        if not raw:
            return self.default_encoding

        result = chardet.detect(raw[:self.binary_check_size])

        if result['confidence'] > 0.7 and result['encoding']:
            encoding = result['encoding'].lower()
            if encoding == 'ascii':
                return 'utf-8'  # ASCII is subset of UTF-8
            return encoding

        return self.default_encoding

    @staticmethod
    def detect_line_ending(text: str) -> LineEnding:
        """Detect line ending style in text."""
        crlf_count = text.count('\r\n')
        lf_count = text.count('\n') - crlf_count
        cr_count = text.count('\r') - crlf_count

        total = crlf_count + lf_count + cr_count
        if total == 0:
            return LineEnding.NONE
        if crlf_count == total:
            return LineEnding.CRLF
        if lf_count == total:
            return LineEnding.LF
        if cr_count == total:
            return LineEnding.CR
        return LineEnding.MIXED
