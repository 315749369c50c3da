import json

import pytest

from ragconf.config.schema import EngineSettings
from ragconf.store.documents import InMemoryDocumentStore
from ragconf.types import Document

FINANCE_TEXTS = {
    1: (
        "invoice payment terms net thirty days apply to every customer account "
        "and late fees accrue monthly"
    ),
    2: (
        "quarterly revenue statement summarizing cash flow ledger balances and "
        "audited investment holdings"
    ),
    3: (
        "loan agreement schedule covering interest rates collateral obligations "
        "and borrower covenants"
    ),
}

GENERAL_TEXTS = {
    4: (
        "invoice payment terms invoice payment terms invoice payment terms "
        "repeated for a general office memo"
    ),
    5: (
        "invoice payment terms described in a general newsletter about office "
        "supplies and catering"
    ),
}


def make_document(doc_id: int, text: str, industry: str = "general", **overrides) -> Document:
    fields = dict(
        id=doc_id,
        industry=industry,
        document_type="invoice" if industry == "finance" else "memo",
        extracted_text=text,
        ai_confidence=0.8,
    )
    fields.update(overrides)
    return Document(**fields)


@pytest.fixture
def settings():
    return EngineSettings.default()


@pytest.fixture
def finance_documents():
    """Three finance documents and two general ones that mention the same terms."""
    docs = [make_document(i, t, industry="finance") for i, t in FINANCE_TEXTS.items()]
    docs += [make_document(i, t) for i, t in GENERAL_TEXTS.items()]
    return docs


@pytest.fixture
def document_store(finance_documents):
    return InMemoryDocumentStore(finance_documents)


@pytest.fixture
def corpus_file(tmp_path, finance_documents):
    """Write the sample corpus as JSON and return its path."""
    path = tmp_path / "corpus.json"
    path.write_text(
        json.dumps({"documents": [d.model_dump(mode="json") for d in finance_documents]})
    )
    return path


@pytest.fixture
def predictions_file(tmp_path):
    path = tmp_path / "predictions.json"
    path.write_text(
        json.dumps(
            [
                {"model": "openai", "confidence": 0.9, "entropy": 0.1},
                {"model": "anthropic", "confidence": 0.88, "entropy": 0.12},
            ]
        )
    )
    return path
