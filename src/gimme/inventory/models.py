"""
Inventory data models.

Matchbox group files have no fixed schema, so a record keeps the raw JSON
object untouched and only lifts out the node identifier.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# Paths tried in order when deciding a record's node identifier
IDENTIFIER_PATHS = ("hostname", "metadata.hostname", "name", "id")

# Candidate paths for well-known fields, first present wins
WELL_KNOWN_FIELDS: Dict[str, List[str]] = {
    "mac": ["mac", "selector.mac", "metadata.mac"],
    "ip": ["ip", "metadata.ip", "selector.ip"],
    "hostname": ["hostname", "metadata.hostname", "name"],
    "cluster": ["cluster", "metadata.cluster", "labels.cluster", "metadata.labels.cluster"],
}

# Where node labels live, in lookup order
LABEL_PATHS = ("labels", "metadata.labels")


class NodeRecord(BaseModel):
    """
    One node's metadata, sourced from one JSON file.
    """

    identifier: str = Field(..., description="Stable node identifier (hostname or name)")
    source: str = Field(..., description="Path of the JSON file the record came from")
    data: Dict[str, Any] = Field(default_factory=dict, description="Raw JSON object")

    def labels(self) -> Dict[str, Any]:
        """Return the record's label mapping, or an empty dict."""
        for path in LABEL_PATHS:
            value = self.data
            for part in path.split("."):
                value = value.get(part) if isinstance(value, dict) else None
            if isinstance(value, dict):
                return value
        return {}

    class Config:
        json_schema_extra = {
            "example": {
                "identifier": "node-a1",
                "source": "/home/ops/matchbox/groups/node-a1.json",
                "data": {
                    "id": "node-a1",
                    "name": "node-a1",
                    "profile": "worker",
                    "selector": {"mac": "52:54:00:a1:00:01"},
                    "metadata": {
                        "hostname": "node-a1",
                        "ip": "10.0.0.5",
                        "cluster": "prod-east",
                        "rack": "r12",
                        "labels": {"role": "worker", "gpu": "a100"},
                    },
                },
            }
        }


class Inventory(BaseModel):
    """
    Ordered set of node records from one load.

    Order follows the sorted source file paths.
    """

    directory: str
    records: List[NodeRecord] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list, description="Problems hit while loading")

    def get(self, identifier: str) -> Optional[NodeRecord]:
        """Return the record for an identifier, or None."""
        for record in self.records:
            if record.identifier == identifier:
                return record
        return None

    def identifiers(self) -> List[str]:
        return [r.identifier for r in self.records]
