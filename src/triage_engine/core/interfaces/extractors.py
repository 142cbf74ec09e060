"""Document text extractor protocol."""

from pathlib import Path
from typing import Protocol


class DocumentTextExtractor(Protocol):
    """Protocol for best-effort document-to-text converters.

    Extractors turn PDF, Office and RTF-like files into plain text for
    knowledge base ingestion.
    """

    def supports(self, path: Path) -> bool:
        """Check if this extractor handles the given file.

        Args:
            path: Path of the dataset file.

        Returns:
            True if ``extract_text`` should be attempted for this file.
        """
        ...

    def extract_text(self, path: Path) -> str | None:
        """Extract plain text from a document.

        Args:
            path: Path of the document.

        Returns:
            The trimmed text, or None when nothing could be extracted.
        """
        ...
