import pytest

from hilock.services.file_io import BinaryFileError, DocumentReader, LineEnding


@pytest.fixture
def reader():
    return DocumentReader()


def test_read_utf8(reader, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes("TODO: café\n".encode("utf-8"))
    document = reader.read(path, encoding="utf-8")
    assert document.text == "TODO: café\n"
    assert document.line_ending == LineEnding.LF


def test_ascii_reported_as_utf8(reader):
    assert reader.detect_encoding(b"plain ascii text\n" * 20) == "utf-8"


def test_crlf_normalized(reader):
    document = reader.decode(b"one\r\ntwo\r\n")
    assert document.text == "one\ntwo\n"
    assert document.line_ending == LineEnding.CRLF


def test_mixed_line_endings(reader):
    assert reader.decode(b"one\r\ntwo\nthree").line_ending == LineEnding.MIXED


def test_bom(reader):
    document = reader.decode(b"\xef\xbb\xbfhello")
    assert document.bom
    assert document.text == "hello"
    assert document.encoding == "utf-8-sig"


def test_binary_rejected(reader):
    with pytest.raises(BinaryFileError):
        reader.decode(b"\x89PNG\r\n\x1a\n\x00\x00\x00")


def test_empty_file(reader):
    document = reader.decode(b"")
    assert document.text == ""
    assert document.line_ending == LineEnding.NONE


def test_missing_file(reader, tmp_path):
    with pytest.raises(OSError):
        reader.read(tmp_path / "missing.txt")
