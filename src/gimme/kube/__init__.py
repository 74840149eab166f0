"""
Kubernetes module.

Wraps kubectl and derives offline, oldest and version-mismatch reports.
"""

from gimme.kube.adapter import KubectlAdapter
from gimme.kube.models import KubeNode, format_age, node_from_item
from gimme.kube.reports import (
    ContextResult,
    collect_nodes,
    find_offline,
    find_oldest,
    find_version_mismatch,
    majority_version,
    oldest_nodes,
)

__all__ = [
    "KubectlAdapter",
    "KubeNode",
    "ContextResult",
    "collect_nodes",
    "find_offline",
    "find_oldest",
    "find_version_mismatch",
    "format_age",
    "majority_version",
    "node_from_item",
    "oldest_nodes",
]
