"""
Domain - the evaluation tree.

Evaluation -> Corpus -> Topic -> QueryGroup -> Query. Every node carries a
metric map; ancestors hold AveragedMetrics fed by query propagation.
"""

from .domain_member import DomainMember
from .query import Query, SearchResponse
from .hierarchy import Evaluation, Corpus, Topic, QueryGroup

LEVELS = ["evaluation", "corpus", "topic", "query-group", "query"]

__all__ = [
    "DomainMember",
    "Evaluation",
    "Corpus",
    "Topic",
    "QueryGroup",
    "Query",
    "SearchResponse",
    "LEVELS",
]
