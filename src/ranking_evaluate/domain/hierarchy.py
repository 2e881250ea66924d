"""The non-leaf levels of the evaluation tree, from broadest to narrowest."""

from __future__ import annotations

from .domain_member import DomainMember
from .query import Query


class QueryGroup(DomainMember):
    """Queries sharing one set of relevance judgments."""
    child_type = Query
    level = "query-group"


class Topic(DomainMember):
    """An information need, grouping query groups."""
    child_type = QueryGroup
    level = "topic"


class Corpus(DomainMember):
    """A document collection evaluated under several topics."""
    child_type = Topic
    level = "corpus"


class Evaluation(DomainMember):
    """Root of the tree."""
    child_type = Corpus
    level = "evaluation"

    def __init__(self, name: str = "evaluation"):
        super().__init__(name, None)
