"""Data models for the ingestion pipeline."""

import os
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class DiscoveredFile:
    path: str
    parent_name: str

    @classmethod
    def from_path(cls, path: str) -> "DiscoveredFile":
        path = os.path.abspath(path)
        return cls(path=path, parent_name=os.path.basename(os.path.dirname(path)))

    @property
    def display_path(self) -> str:
        return f"./{self.parent_name}/{os.path.basename(self.path)}"


@dataclass
class RawRecord:
    record_type: str
    payload: Union[bytes, str]
    record_id: Optional[str] = None
    headers: dict = field(default_factory=dict)


@dataclass
class Document:
    docid: Optional[str]
    body: str
    store_term_vectors: bool = False
    positional: bool = True  # False: frequencies only

    def is_blank(self) -> bool:
        return not self.body.strip()


@dataclass(frozen=True)
class Skip:
    record_id: Optional[str]
    reason: str  # empty, parse_error, bad_framing


ParseResult = Union[Document, Skip, None]


@dataclass
class TaskResult:
    file: DiscoveredFile
    documents_indexed: int = 0
    documents_skipped: int = 0
    failed: bool = False
    error: Optional[str] = None


@dataclass
class RunSummary:
    files_total: int
    files_failed: int
    documents_indexed: int
    documents_skipped: int
    elapsed_seconds: float
