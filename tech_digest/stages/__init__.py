from .delivery import DeliveryStats, run_delivery
from .ingest import IngestStats, run_ingest
from .relevance import RelevanceStats, run_relevance
from .selection import select_articles

__all__ = [
    "DeliveryStats",
    "IngestStats",
    "RelevanceStats",
    "run_delivery",
    "run_ingest",
    "run_relevance",
    "select_articles",
]
