"""Persistence boundary: document store protocol and record stores."""

from ragconf.store.documents import DocumentStore, InMemoryDocumentStore, load_documents_file
from ragconf.store.sqlite import SQLiteRecordStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteRecordStore",
    "load_documents_file",
]
