"""
DomainMember - a node of the evaluation tree.

Each node has a name, a parent back-reference, insertion-ordered children
(unique names) and a mapping of metric name -> Metric. Nodes are created
lazily through find_or_create() and never removed during a run.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterator, List, Optional, Type

from ..metrics import Metric
from ..validation import InvalidInputError


class DomainMember:
    """Base class of Evaluation, Corpus, Topic, QueryGroup and Query."""

    # Kind of the children of this level; None for the leaf level
    child_type: Optional[Type["DomainMember"]] = None
    level = "member"

    def __init__(self, name: str, parent: Optional["DomainMember"] = None):
        self.name = name
        self.parent = parent
        self._children: Dict[str, DomainMember] = {}
        self._metrics: Dict[str, Metric] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Children
    # =========================================================================

    @property
    def children(self) -> List["DomainMember"]:
        """Children in insertion order."""
        with self._lock:
            return list(self._children.values())

    def child(self, name: str) -> Optional["DomainMember"]:
        with self._lock:
            return self._children.get(name)

    def find_or_create(
        self,
        name: str,
        factory: Optional[Callable[[str], "DomainMember"]] = None,
    ) -> "DomainMember":
        """
        Return the child with the given name, creating and appending it if absent.

        Atomic: concurrent callers racing on the same name all get the same
        instance.

        Args:
            name: Child name, unique within this node.
            factory: Callable building the child from its name. Defaults to
                     this level's child_type.

        Raises:
            InvalidInputError: On a leaf node, or if factory builds the wrong kind.
        """
        if self.child_type is None:
            raise InvalidInputError(f"{type(self).__name__} '{self.name}' cannot have children")
        with self._lock:
            existing = self._children.get(name)
            if existing is not None:
                return existing
            created = (factory or self.child_type)(name)
            if not isinstance(created, self.child_type):
                raise InvalidInputError(
                    f"{type(self).__name__} children must be {self.child_type.__name__}, "
                    f"got {type(created).__name__}"
                )
            created.parent = self
            self._children[name] = created
            return created

    # =========================================================================
    # Tree navigation
    # =========================================================================

    def ancestors(self) -> Iterator["DomainMember"]:
        """Parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def root(self) -> "DomainMember":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def path(self) -> List[str]:
        """Names from the root down to this node."""
        names = [self.name]
        names.extend(a.name for a in self.ancestors())
        return list(reversed(names))

    # =========================================================================
    # Metrics
    # =========================================================================

    @property
    def metrics(self) -> Dict[str, Metric]:
        """Snapshot of metric name -> Metric."""
        with self._lock:
            return dict(self._metrics)

    def metric(self, name: str) -> Optional[Metric]:
        with self._lock:
            return self._metrics.get(name)

    def metric_or_create(self, name: str, factory: Callable[[str], Metric]) -> Metric:
        """Return the metric with the given name, creating it atomically if absent."""
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = factory(name)
                self._metrics[name] = metric
            return metric

    def add_metric(self, metric: Metric) -> Metric:
        """
        Attach a metric under its name.

        Raises:
            InvalidInputError: If a different metric already uses the name.
        """
        with self._lock:
            existing = self._metrics.setdefault(metric.name, metric)
        if existing is not metric:
            raise InvalidInputError(
                f"{type(self).__name__} '{self.name}' already has a metric named '{metric.name}'"
            )
        return metric

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
