"""SQLite FTS5 full-text index used as the ingestion sink.

The index lives at <output_path>/index.db and is recreated on open. Document
ids go to a plain `documents` table; bodies are tokenized into a contentless
FTS5 table sharing the same rowid, so they are indexed but not stored.

Analyzer and field options map onto FTS5:
    stemmer porter / none        tokenize 'porter unicode61' / 'unicode61'
    positional True / False      detail=full / detail=column
    store_term_vectors           fts5vocab 'instance' table documents_terms
    remove_stopwords             English stopword set dropped before indexing
"""

import logging
import os
import re
import sqlite3
import threading

from .errors import IndexWriteError
from .models import Document

logger = logging.getLogger("trec_ingest")

TOKENIZERS = {
    "porter": "porter unicode61",
    "none": "unicode61",
}

# Lucene's EnglishAnalyzer default stop set
ENGLISH_STOP_WORDS = frozenset([
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "if", "in",
    "into", "is", "it", "no", "not", "of", "on", "or", "such", "that", "the",
    "their", "then", "there", "these", "they", "this", "to", "was", "will", "with",
])

_STOPWORD_RE = re.compile(
    r"\b(?:" + "|".join(sorted(ENGLISH_STOP_WORDS)) + r")\b", re.IGNORECASE
)



class SearchIndex:
    """Thread-safe document sink over a single SQLite connection.

    Each document is written as soon as it is added, inside a savepoint, so a
    failed write leaves nothing behind and affects only that document. All
    writes share one open transaction: nothing is durable until commit(), and
    close() without commit() discards the run.

    positional and store_term_vectors are fixed per index, since FTS5 sets
    detail and the vocab table at creation time. A document asking for
    positions from a count-only index, or for term vectors from an index
    built without them, is rejected.
    """

    def __init__(self, index_path: str, remove_stopwords: bool = True, stemmer: str = "porter",
                 store_term_vectors: bool = False, positional: bool = True):
        if stemmer not in TOKENIZERS:
            raise ValueError(f"Unknown stemmer {stemmer!r}, expected one of {', '.join(TOKENIZERS)}")

        self.index_path = index_path
        self.db_path = os.path.join(index_path, "index.db")
        self.remove_stopwords = remove_stopwords
        self.stemmer = stemmer
        self.store_term_vectors = store_term_vectors
        self.positional = positional

        self._lock = threading.Lock()
        self._closed = False
        self._lost_transaction = False

        os.makedirs(index_path, exist_ok=True)
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(self.db_path + suffix):
                os.remove(self.db_path + suffix)

        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._init_db()
        except sqlite3.Error as e:
            raise IndexWriteError(f"Cannot create index at {self.db_path}: {e}") from e

    def _init_db(self):
        detail = "full" if self.positional else "column"
        self._conn.executescript(f"""
            CREATE TABLE documents (
                id INTEGER PRIMARY KEY,
                docid TEXT
            );

            CREATE INDEX idx_documents_docid ON documents(docid);

            CREATE VIRTUAL TABLE documents_fts USING fts5(
                body,
                content='',
                tokenize='{TOKENIZERS[self.stemmer]}',
                detail={detail}
            );

            CREATE TABLE index_meta (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)
        if self.store_term_vectors:
            self._conn.execute(
                "CREATE VIRTUAL TABLE documents_terms USING fts5vocab(documents_fts, 'instance')"
            )
        self._conn.commit()

    def analyze(self, body: str) -> str:
        if self.remove_stopwords:
            return _STOPWORD_RE.sub(" ", body)
        return body

    def check_hints(self, doc: Document):
        if doc.positional and not self.positional:
            raise ValueError(f"Document {doc.docid} needs positions but the index is count-only")
        if doc.store_term_vectors and not self.store_term_vectors:
            raise ValueError(f"Document {doc.docid} needs term vectors but the index has none")

    def add_document(self, doc: Document):
        self.check_hints(doc)
        text = self.analyze(doc.body)
        with self._lock:
            if self._closed:
                raise IndexWriteError("index is closed")
            try:
                if not self._conn.in_transaction:
                    self._conn.execute("BEGIN")
                self._conn.execute("SAVEPOINT add_document")
            except sqlite3.Error as e:
                raise IndexWriteError(f"Cannot start write for {doc.docid}: {e}") from e

            try:
                cur = self._conn.execute("INSERT INTO documents (docid) VALUES (?)", (doc.docid,))
                self._conn.execute(
                    "INSERT INTO documents_fts (rowid, body) VALUES (?, ?)",
                    (cur.lastrowid, text),
                )
            except sqlite3.Error as e:
                self._rollback_document(doc.docid)
                raise IndexWriteError(f"Failed writing document {doc.docid}: {e}") from e
            self._conn.execute("RELEASE add_document")

    def _rollback_document(self, docid):
        try:
            self._conn.execute("ROLLBACK TO add_document")
            self._conn.execute("RELEASE add_document")
        except sqlite3.Error as e:
            # sqlite already rolled back the whole transaction; earlier documents are gone
            self._lost_transaction = True
            logger.error(f"Rollback of document {docid} failed, run transaction lost: {e}")

    def num_docs(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()
        return row[0]

    def commit(self):
        with self._lock:
            if self._closed:
                raise IndexWriteError("index is closed")
            if self._lost_transaction:
                raise IndexWriteError(f"Refusing to commit {self.db_path}: documents were lost in a failed rollback")
            try:
                self._conn.executemany(
                    "INSERT OR REPLACE INTO index_meta (key, value) VALUES (?, ?)",
                    [
                        ("stemmer", self.stemmer),
                        ("remove_stopwords", str(self.remove_stopwords).lower()),
                        ("store_term_vectors", str(self.store_term_vectors).lower()),
                        ("positional", str(self.positional).lower()),
                    ],
                )
                self._conn.commit()
            except sqlite3.Error as e:
                raise IndexWriteError(f"Commit failed for {self.db_path}: {e}") from e
        logger.debug(f"Committed index at {self.db_path}")

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._conn.close()
