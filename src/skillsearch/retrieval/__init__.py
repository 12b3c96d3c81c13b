"""Retrieval engines: keyword, semantic and hybrid."""

from skillsearch.retrieval.base import Retriever
from skillsearch.retrieval.hybrid import HybridRetriever, merge_results
from skillsearch.retrieval.keyword import KeywordRetriever
from skillsearch.retrieval.semantic import SemanticRetriever

__all__ = [
    "HybridRetriever",
    "KeywordRetriever",
    "Retriever",
    "SemanticRetriever",
    "merge_results",
]
