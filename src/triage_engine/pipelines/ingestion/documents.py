"""Plain-text extraction for document-style knowledge base files."""

import re
import shutil
import subprocess
from pathlib import Path
from typing import Any

import docx
import pdfplumber
import structlog
import yaml

from triage_engine.core.exceptions import ExtractionError
from triage_engine.core.interfaces import DocumentTextExtractor

logger = structlog.get_logger(__name__)

_FRONTMATTER_RE = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

TEXTUTIL_TIMEOUT_SECONDS = 60


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a leading YAML frontmatter block from markdown content.

    Returns:
        The parsed mapping (empty when absent or not a mapping) and the body.
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        meta = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning("frontmatter.invalid", error=str(e))
        return {}, text
    if not isinstance(meta, dict):
        return {}, text
    return meta, text[match.end():]


def _clean(text: str | None) -> str | None:
    if text is None:
        return None
    trimmed = text.strip()
    return trimmed or None


class PlainTextExtractor:
    """Reads text, markdown and log files as UTF-8."""

    extensions = frozenset({".txt", ".md", ".markdown", ".log"})

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def extract_text(self, path: Path) -> str | None:
        return _clean(path.read_text(encoding="utf-8", errors="replace"))


class PdfExtractor:
    """Page text via pdfplumber, pages separated by a blank line."""

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() == ".pdf"

    def extract_text(self, path: Path) -> str | None:
        pages: list[str] = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                text = _clean(page.extract_text())
                if text:
                    pages.append(text)
        return "\n\n".join(pages) or None


class DocxExtractor:
    """Paragraph text via python-docx."""

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() == ".docx"

    def extract_text(self, path: Path) -> str | None:
        document = docx.Document(str(path))
        return _clean("\n".join(paragraph.text for paragraph in document.paragraphs))


class TextUtilExtractor:
    """Legacy ``.doc`` and ``.rtf`` through the macOS ``textutil`` command.

    Returns None where ``textutil`` is unavailable or fails.
    """

    extensions = frozenset({".doc", ".rtf"})

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def extract_text(self, path: Path) -> str | None:
        executable = shutil.which("textutil")
        if executable is None:
            logger.info("textutil.unavailable", path=str(path))
            return None
        try:
            result = subprocess.run(
                [executable, "-convert", "txt", "-stdout", str(path)],
                capture_output=True,
                text=True,
                timeout=TEXTUTIL_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("textutil.failed", path=str(path), error=str(e))
            return None
        if result.returncode != 0:
            logger.warning("textutil.failed", path=str(path), returncode=result.returncode)
            return None
        return _clean(result.stdout)


def default_extractors() -> list[DocumentTextExtractor]:
    return [PlainTextExtractor(), PdfExtractor(), DocxExtractor(), TextUtilExtractor()]


class DocumentTextService:
    """Dispatches a file to the first extractor that supports it."""

    def __init__(self, extractors: list[DocumentTextExtractor] | None = None) -> None:
        self._extractors = extractors if extractors is not None else default_extractors()

    def supports(self, path: Path) -> bool:
        return any(extractor.supports(path) for extractor in self._extractors)

    def extract_text(self, path: Path) -> str | None:
        for extractor in self._extractors:
            if not extractor.supports(path):
                continue
            try:
                return extractor.extract_text(path)
            except (OSError, ExtractionError):
                raise
            except Exception as e:
                raise ExtractionError(
                    f"Failed to extract text from {path.name}: {e}",
                    details={"path": str(path), "extractor": type(extractor).__name__},
                ) from e
        return None
