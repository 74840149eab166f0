"""
Kubernetes node models.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"


class KubeNode(BaseModel):
    """
    A cluster node as reported by `kubectl get nodes -o json`.
    """

    name: str
    status: str = Field(..., description="Ready, NotReady or Unknown, optionally ',SchedulingDisabled'")
    version: str = Field(default="", description="Kubelet version")
    age_seconds: float = Field(default=0.0, ge=0.0, description="Seconds since the node object was created")
    roles: List[str] = Field(default_factory=list)
    internal_ip: Optional[str] = None
    context: Optional[str] = Field(None, description="Kube context the node was read from")

    @property
    def base_status(self) -> str:
        """Status without the SchedulingDisabled suffix."""
        return self.status.split(",", 1)[0]

    @property
    def is_ready(self) -> bool:
        return self.base_status == "Ready"

    @property
    def age(self) -> str:
        return format_age(self.age_seconds)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "node-a1",
                "status": "Ready",
                "version": "v1.29.4",
                "age_seconds": 8640000,
                "roles": ["worker"],
                "internal_ip": "10.0.0.5",
                "context": "prod-east",
            }
        }


def format_age(seconds: float) -> str:
    """Short human age in the style of kubectl's AGE column."""
    seconds = int(seconds)
    if seconds < 120:
        return f"{seconds}s"
    if seconds < 2 * 3600:
        return f"{seconds // 60}m"
    if seconds < 48 * 3600:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def node_from_item(
    item: Dict[str, Any],
    context: Optional[str] = None,
    now: Optional[datetime] = None,
) -> KubeNode:
    """
    Convert one node object from kubectl JSON output into a KubeNode.

    Args:
        item: Node object (an element of "items")
        context: Kube context it came from
        now: Reference time for the age (default: current UTC time)
    """
    metadata = item.get("metadata") or {}
    status = item.get("status") or {}
    spec = item.get("spec") or {}

    ready = next(
        (c for c in status.get("conditions") or [] if c.get("type") == "Ready"),
        None,
    )
    if ready is None:
        state = "Unknown"
    elif ready.get("status") == "True":
        state = "Ready"
    else:
        state = "NotReady"
    if spec.get("unschedulable"):
        state += ",SchedulingDisabled"

    created = _parse_timestamp(metadata.get("creationTimestamp"))
    now = now or datetime.now(timezone.utc)
    age = max((now - created).total_seconds(), 0.0) if created else 0.0

    labels = metadata.get("labels") or {}
    roles = sorted(
        key[len(ROLE_LABEL_PREFIX):]
        for key in labels
        if key.startswith(ROLE_LABEL_PREFIX) and key[len(ROLE_LABEL_PREFIX):]
    )

    internal_ip = next(
        (a.get("address") for a in status.get("addresses") or [] if a.get("type") == "InternalIP"),
        None,
    )

    return KubeNode(
        name=str(metadata.get("name", "")),
        status=state,
        version=str((status.get("nodeInfo") or {}).get("kubeletVersion", "")),
        age_seconds=age,
        roles=roles,
        internal_ip=internal_ip,
        context=context,
    )
