import io

import pytest
from pypdf import PdfWriter
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject

from doc_vault.exception.custom_exception import FileSystemError
from doc_vault.src.document_ingestion.extractor import ContentExtractor


@pytest.fixture
def extractor():
    return ContentExtractor()


async def test_plain_text_round_trip(tmp_path, extractor):
    text = "héllo wörld ✓\nsecond line"
    target = tmp_path / "notes.txt"
    target.write_bytes(text.encode("utf-8"))

    assert await extractor.extract_text(target) == text


async def test_invalid_utf8_is_replaced(tmp_path, extractor):
    target = tmp_path / "binary.bin"
    target.write_bytes(b"ok \xff\xfe end")

    assert await extractor.extract_text(target) == "ok \ufffd\ufffd end"


async def test_empty_file_gives_empty_text(tmp_path, extractor):
    target = tmp_path / "empty.txt"
    target.write_bytes(b"")

    assert await extractor.extract_text(target) == ""


async def test_missing_file(tmp_path, extractor):
    with pytest.raises(FileSystemError):
        await extractor.extract_text(tmp_path / "nope.txt")


async def test_directory_is_not_a_file(tmp_path, extractor):
    with pytest.raises(FileSystemError):
        await extractor.extract_text(tmp_path)


def _pdf_bytes(*page_texts: str) -> bytes:
    """One page per string, drawn with Helvetica so pypdf can read it back."""
    writer = PdfWriter()
    font = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
        }
    )
    for text in page_texts:
        page = writer.add_blank_page(width=300, height=200)
        page[NameObject("/Resources")] = DictionaryObject(
            {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font})}
        )
        content = DecodedStreamObject()
        content.set_data(f"BT /F1 18 Tf 20 100 Td ({text}) Tj ET".encode("latin-1"))
        page[NameObject("/Contents")] = writer._add_object(content)

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


async def test_pdf_text_is_extracted(tmp_path, extractor):
    target = tmp_path / "report.pdf"
    target.write_bytes(_pdf_bytes("Hello vault", "Second page"))

    text = await extractor.extract_text(target)

    assert "Hello vault" in text
    assert "Second page" in text
    assert "%PDF" not in text


async def test_pdf_with_leading_bytes_is_still_parsed(tmp_path, extractor):
    target = tmp_path / "scanned.pdf"
    target.write_bytes(b"\r\n" + _pdf_bytes("Hello vault"))

    text = await extractor.extract_text(target)

    assert "Hello vault" in text
    assert "%PDF" not in text


async def test_blank_pdf_gives_no_text(tmp_path, extractor):
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    target = tmp_path / "blank.pdf"
    with open(target, "wb") as f:
        writer.write(f)

    text = await extractor.extract_text(target)
    # a blank page has no text layer; raw PDF syntax must not leak through
    assert "%PDF" not in text
    assert text.strip() == ""


async def test_broken_pdf_falls_back_to_raw_text(tmp_path, extractor):
    raw = b"%PDF-1.4 this is not really a pdf"
    target = tmp_path / "broken.pdf"
    target.write_bytes(raw)

    assert await extractor.extract_text(target) == raw.decode("utf-8")


async def test_text_mentioning_pdf_header_falls_back(tmp_path, extractor):
    raw = "Notes: every PDF file starts with %PDF-1.x followed by objects.\n"
    target = tmp_path / "notes.txt"
    target.write_text(raw, encoding="utf-8")

    assert await extractor.extract_text(target) == raw
