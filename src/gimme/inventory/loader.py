"""
Matchbox group directory loader.

Each JSON file holds one node. Files that cannot be used are reported as
warnings and skipped; the rest of the directory still loads.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from gimme.core.errors import ConfigurationError
from gimme.inventory.models import IDENTIFIER_PATHS, Inventory, NodeRecord
from gimme.inventory.query import lookup_path

logger = logging.getLogger(__name__)


def identify(data: Dict[str, Any]) -> Optional[str]:
    """Return the node identifier of a raw record, or None if it has none."""
    for path in IDENTIFIER_PATHS:
        try:
            value = lookup_path(data, path)
        except KeyError:
            continue
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class InventoryLoader:
    """
    Reads every *.json file under a directory into an Inventory.

    Usage:
        inventory = InventoryLoader("~/matchbox/groups").load()
    """

    def __init__(self, directory: Union[str, Path], recursive: bool = False):
        """
        Initialize loader.

        Args:
            directory: Matchbox groups directory
            recursive: Also scan subdirectories
        """
        self.directory = Path(directory).expanduser()
        self.recursive = recursive

    def load(self) -> Inventory:
        """
        Load the directory.

        Duplicate identifiers: the later file wins and takes the earlier
        record's position.

        Raises:
            ConfigurationError: If the directory does not exist
        """
        if not self.directory.exists():
            raise ConfigurationError(f"Inventory directory does not exist: {self.directory}")
        if not self.directory.is_dir():
            raise ConfigurationError(f"Inventory path is not a directory: {self.directory}")

        pattern = "**/*.json" if self.recursive else "*.json"
        files = sorted(p for p in self.directory.glob(pattern) if p.is_file())

        inventory = Inventory(directory=str(self.directory))
        positions: Dict[str, int] = {}

        for path in files:
            record = self._load_file(path, inventory)
            if record is None:
                continue

            if record.identifier in positions:
                index = positions[record.identifier]
                previous = inventory.records[index]
                self._warn(
                    inventory,
                    f"Duplicate node '{record.identifier}' in {path}, "
                    f"replacing record from {previous.source}",
                )
                inventory.records[index] = record
            else:
                positions[record.identifier] = len(inventory.records)
                inventory.records.append(record)

        logger.info(
            f"Loaded {len(inventory.records)} node record(s) from {self.directory} "
            f"({len(files)} file(s), {len(inventory.warnings)} warning(s))"
        )
        return inventory

    def _load_file(self, path: Path, inventory: Inventory) -> Optional[NodeRecord]:
        """Parse one file; return None (after warning) if it is unusable."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            self._warn(inventory, f"Skipping {path}: cannot read file ({e})")
            return None
        except json.JSONDecodeError as e:
            self._warn(inventory, f"Skipping {path}: invalid JSON ({e})")
            return None

        if not isinstance(data, dict):
            self._warn(inventory, f"Skipping {path}: expected a JSON object, got {type(data).__name__}")
            return None

        identifier = identify(data)
        if identifier is None:
            self._warn(
                inventory,
                f"Skipping {path}: no node identifier (looked for {', '.join(IDENTIFIER_PATHS)})",
            )
            return None

        return NodeRecord(identifier=identifier, source=str(path), data=data)

    @staticmethod
    def _warn(inventory: Inventory, message: str) -> None:
        logger.warning(message)
        inventory.warnings.append(message)


def load_inventory(directory: Union[str, Path], recursive: bool = False) -> Inventory:
    """Convenience wrapper around InventoryLoader."""
    return InventoryLoader(directory, recursive=recursive).load()
