"""
Cluster-wide reports derived from kubectl node listings.

The find_* functions are pure and operate on whatever nodes they are given.
collect_nodes gathers those nodes across contexts one at a time; a context
that fails is reported and the others are still collected.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from gimme.core.errors import AdapterError
from gimme.kube.adapter import KubectlAdapter
from gimme.kube.models import KubeNode

logger = logging.getLogger(__name__)


class ContextResult(BaseModel):
    """Nodes read from one kube context, or the error that prevented it."""

    context: Optional[str] = None
    nodes: List[KubeNode] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def label(self) -> str:
        return self.context or "(current context)"


def collect_nodes(
    adapter: KubectlAdapter,
    contexts: Sequence[Optional[str]],
    now: Optional[datetime] = None,
) -> List[ContextResult]:
    """
    List nodes from each context sequentially.

    Args:
        adapter: kubectl adapter
        contexts: Contexts to query (None = current context)
        now: Reference time for ages
    """
    results = []
    for context in contexts:
        try:
            nodes = adapter.list_nodes(context=context, now=now)
        except AdapterError as e:
            logger.warning(f"Failed to list nodes for {context or 'current context'}: {e}")
            results.append(ContextResult(context=context, error=str(e)))
            continue
        results.append(ContextResult(context=context, nodes=nodes))
    return results


def find_offline(nodes: Sequence[KubeNode]) -> List[KubeNode]:
    """Nodes whose status is anything other than Ready. Cordoned Ready nodes are online."""
    return [n for n in nodes if not n.is_ready]


def oldest_nodes(nodes: Sequence[KubeNode], count: int = 1) -> List[KubeNode]:
    """
    The count oldest nodes, oldest first.

    Equal ages keep their input order.
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    return sorted(nodes, key=lambda n: n.age_seconds, reverse=True)[:count]


def find_oldest(nodes: Sequence[KubeNode]) -> Optional[KubeNode]:
    """The node with the greatest age; the first one wins a tie."""
    oldest = oldest_nodes(nodes, 1)
    return oldest[0] if oldest else None


def majority_version(nodes: Sequence[KubeNode]) -> Optional[str]:
    """Most common kubelet version; ties go to the version seen first."""
    if not nodes:
        return None
    return Counter(n.version for n in nodes).most_common()[0][0]


def find_version_mismatch(nodes: Sequence[KubeNode]) -> Tuple[Optional[str], List[KubeNode]]:
    """
    Nodes running a kubelet version different from the majority.

    Returns:
        (majority version, mismatching nodes in input order)
    """
    majority = majority_version(nodes)
    return majority, [n for n in nodes if n.version != majority]
