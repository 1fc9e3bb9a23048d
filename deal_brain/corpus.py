"""Immutable per-request collection of document texts."""

import logging
import re
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict

from deal_brain.models import DocumentText, MimeClass

logger = logging.getLogger(__name__)

_TABULAR_EXTENSIONS = {".csv", ".tsv", ".xls", ".xlsx", ".xlsm", ".ods"}
_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif", ".webp"}


def mime_class_for(source_name: str) -> MimeClass:
    suffix = PurePath(source_name).suffix.lower()
    if suffix in _TABULAR_EXTENSIONS:
        return MimeClass.TABULAR
    if suffix in _IMAGE_EXTENSIONS:
        return MimeClass.IMAGE_DERIVED
    return MimeClass.NARRATIVE


class DocumentCorpus(BaseModel):
    """Ordered, read-only set of documents shared by every pipeline stage."""

    model_config = ConfigDict(frozen=True)

    documents: tuple[DocumentText, ...] = ()

    @classmethod
    def from_files(cls, files: list[tuple[str, str]]) -> "DocumentCorpus":
        """Build a corpus from ``(source_name, content)`` pairs, in order."""
        documents = tuple(
            DocumentText(
                id=f"doc_{index}",
                source_name=name,
                mime_class=mime_class_for(name),
                content=content or "",
            )
            for index, (name, content) in enumerate(files, start=1)
        )
        # Content stays out of the logs, only sizes
        logger.info(
            "Built corpus: %d documents, %d characters",
            len(documents), sum(len(d.content) for d in documents),
        )
        return cls(documents=documents)

    @property
    def text(self) -> str:
        """All document contents joined in corpus order."""
        return "\n\n".join(d.content for d in self.documents if d.content)

    def is_empty(self) -> bool:
        return not self.text.strip()

    def lines(self) -> list[str]:
        return [line for d in self.documents for line in d.content.splitlines()]

    def count_documents_containing(self, forms: list[str]) -> int:
        """Number of documents in which any of ``forms`` occurs as a whole token."""
        forms = [f for f in forms if f]
        if not forms:
            return 0
        pattern = re.compile(
            r"(?<![\w.])(?:" + "|".join(re.escape(f) for f in forms) + r")(?!\w|\.\d)",
            re.IGNORECASE,
        )
        return sum(1 for d in self.documents if pattern.search(d.content))

    def __len__(self) -> int:
        return len(self.documents)
