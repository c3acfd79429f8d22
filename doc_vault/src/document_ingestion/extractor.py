from __future__ import annotations

from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader

from doc_vault.exception.custom_exception import FileSystemError
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.utils.thread_pool import run_sync

PDF_SIGNATURE = b"%PDF-"
# pypdf tolerates junk (CR/LF, BOM) before the header
PDF_HEADER_WINDOW = 1024


class ContentExtractor:
    """
    Pulls plain text out of a stored upload.

    - files with the PDF signature near the start go through PyPDFLoader (pypdf)
    - anything else, or a PDF that fails to parse, is decoded as UTF-8
    - an empty result is valid; callers decide what to do with it
    """

    def __init__(self, page_separator: str = "\n\n"):
        self.page_separator = page_separator

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise FileSystemError(f"File not found: {path}", e) from e
        except OSError as e:
            raise FileSystemError(f"File is not readable: {path}", e) from e

    def _load_pdf_text(self, path: Path) -> str:
        loader = PyPDFLoader(str(path))
        pages = loader.load()
        return self.page_separator.join(p.page_content for p in pages)

    @staticmethod
    def _decode(data: bytes) -> str:
        return data.decode("utf-8", errors="replace")

    async def extract_text(self, physical_location: Path | str) -> str:
        path = Path(physical_location)
        if not path.is_file():
            raise FileSystemError(f"File not found: {path}")

        data = await run_sync(self._read_bytes, path)

        if PDF_SIGNATURE in data[:PDF_HEADER_WINDOW]:
            try:
                text = await run_sync(self._load_pdf_text, path)
                log.info("PDF text extracted | file=%s | chars=%d", path.name, len(text))
                return text
            except Exception as e:  # pypdf raises a wide range of errors on malformed files
                log.warning(
                    "PDF parsing failed, falling back to raw text | file=%s | error=%s",
                    path.name,
                    str(e),
                )

        text = self._decode(data)
        log.info("Raw text extracted | file=%s | chars=%d", path.name, len(text))
        return text
