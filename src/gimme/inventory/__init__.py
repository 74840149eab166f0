"""
Node inventory module.

Loads Matchbox group files and answers field queries against them.
"""

from gimme.inventory.loader import InventoryLoader, load_inventory
from gimme.inventory.models import Inventory, NodeRecord
from gimme.inventory.query import FieldQueryEngine, format_value, lookup_path

__all__ = [
    "Inventory",
    "InventoryLoader",
    "FieldQueryEngine",
    "NodeRecord",
    "format_value",
    "load_inventory",
    "lookup_path",
]
