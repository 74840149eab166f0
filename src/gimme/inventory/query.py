"""
Field queries over a loaded inventory.

Field names are case-sensitive. Nested values are addressed with dot paths
("metadata.labels.role"), list items with their index ("disks.0"). A key that
literally contains a dot is matched before the path is split.
"""

import json
import logging
from typing import Any, Iterable, List, Optional, Set, Tuple

from gimme.core.errors import FieldNotFound, NodeNotFound
from gimme.inventory.models import WELL_KNOWN_FIELDS, Inventory, NodeRecord

logger = logging.getLogger(__name__)


def lookup_path(data: Any, path: str) -> Any:
    """
    Return the value at a dot path.

    Raises:
        KeyError: If any step of the path is absent
    """
    if isinstance(data, dict):
        if path in data:
            return data[path]
        head, sep, rest = path.partition(".")
        if sep and head in data:
            return lookup_path(data[head], rest)
        raise KeyError(path)

    if isinstance(data, list):
        head, sep, rest = path.partition(".")
        try:
            item = data[int(head)]
        except (ValueError, IndexError):
            raise KeyError(path) from None
        return lookup_path(item, rest) if sep else item

    raise KeyError(path)


def flatten_paths(data: Any, prefix: str = "") -> Iterable[str]:
    """Yield the dot path of every leaf below a mapping. Lists count as leaves."""
    if not isinstance(data, dict) or not data:
        if prefix:
            yield prefix
        return
    for key, value in data.items():
        yield from flatten_paths(value, f"{prefix}.{key}" if prefix else str(key))


def format_value(value: Any) -> str:
    """Render a JSON value the way it is printed and compared."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, bool)) or value is None:
        return json.dumps(value, sort_keys=True)
    return str(value)


class FieldQueryEngine:
    """
    Lookup, reverse lookup and label filtering over an Inventory.
    """

    def __init__(self, inventory: Inventory):
        self.inventory = inventory

    def record(self, identifier: str) -> NodeRecord:
        """
        Return the record for a node.

        Raises:
            NodeNotFound: If no record has this identifier
        """
        record = self.inventory.get(identifier)
        if record is None:
            raise NodeNotFound(identifier)
        return record

    def get(self, identifier: str, field: str) -> Any:
        """
        Direct lookup of one field.

        A field holding "" returns "", an absent field raises.

        Raises:
            NodeNotFound: Unknown identifier
            FieldNotFound: Field absent on this record
        """
        record = self.record(identifier)
        try:
            return lookup_path(record.data, field)
        except KeyError:
            raise FieldNotFound(identifier, field) from None

    def resolve(self, identifier: str, name: str) -> Tuple[str, Any]:
        """
        Look up a well-known field (mac, ip, hostname) through its candidate paths.

        Returns:
            (path, value) of the first candidate present on the record
        """
        record = self.record(identifier)
        for path in WELL_KNOWN_FIELDS.get(name, [name]):
            try:
                return path, lookup_path(record.data, path)
            except KeyError:
                continue
        raise FieldNotFound(identifier, name)

    def find_value(self, identifier: str, name: str) -> Optional[Any]:
        """Like resolve, but returns None instead of raising FieldNotFound."""
        try:
            return self.resolve(identifier, name)[1]
        except FieldNotFound:
            return None

    def reverse_lookup(self, field: str, value: str, substring: bool = False) -> List[str]:
        """
        Return identifiers of records whose field matches value, in inventory order.

        Args:
            field: Dot path to compare
            value: Expected value (compared as a string)
            substring: Match when value occurs anywhere in the field instead of
                requiring equality

        List fields match when any element matches.
        """
        matches = []
        for record in self.inventory.records:
            try:
                actual = lookup_path(record.data, field)
            except KeyError:
                continue
            candidates = actual if isinstance(actual, list) else [actual]
            for candidate in candidates:
                text = format_value(candidate)
                if (value in text) if substring else (text == value):
                    matches.append(record.identifier)
                    break
        logger.debug(f"Reverse lookup {field}={value!r} matched {len(matches)} node(s)")
        return matches

    def filter_by_label(self, key: str, value: Optional[str] = None) -> List[NodeRecord]:
        """Return records whose labels contain key, and equal value if given."""
        result = []
        for record in self.inventory.records:
            labels = record.labels()
            if key not in labels:
                continue
            if value is not None and format_value(labels[key]) != value:
                continue
            result.append(record)
        return result

    def list_fields(self, nested: bool = False) -> Set[str]:
        """
        Union of field names across all records.

        Args:
            nested: Return every leaf dot path instead of top-level keys only
        """
        fields: Set[str] = set()
        for record in self.inventory.records:
            if nested:
                fields.update(flatten_paths(record.data))
            else:
                fields.update(record.data.keys())
        return fields
