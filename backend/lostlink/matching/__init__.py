from .claims import ClaimCoordinator, ClaimOutcome
from .embeddings import combine
from .geo import RankedResult, filter_and_rank, haversine_miles
from .pipeline import MatchingPipeline, MatchingPolicy, Upload
from .retriever import SimilarityRetriever, ensure_specific
from .reverse import MatchAlert, ReverseMatcher, ReverseMatchOutcome
from .vector_store import Hit, SqlVectorStore

__all__ = [
    "ClaimCoordinator",
    "ClaimOutcome",
    "Hit",
    "MatchAlert",
    "MatchingPipeline",
    "MatchingPolicy",
    "RankedResult",
    "ReverseMatchOutcome",
    "ReverseMatcher",
    "SimilarityRetriever",
    "SqlVectorStore",
    "Upload",
    "combine",
    "ensure_specific",
    "filter_and_rank",
    "haversine_miles",
]
