"""Hybrid retrieval: BM25, semantic similarity, fusion and summaries."""

from ragconf.retrieval.bm25 import BM25Scorer
from ragconf.retrieval.fusion import fuse_scores, normalize_lexical
from ragconf.retrieval.retriever import HybridRetriever, choose_strategy, relevance_reason
from ragconf.retrieval.semantic import semantic_scores
from ragconf.retrieval.summarizer import ContextSummarizer
from ragconf.tokenize import tokenize

__all__ = [
    "BM25Scorer",
    "ContextSummarizer",
    "HybridRetriever",
    "choose_strategy",
    "fuse_scores",
    "normalize_lexical",
    "relevance_reason",
    "semantic_scores",
    "tokenize",
]
