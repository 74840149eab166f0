"""
GIMME - Infrastructure query CLI

This package answers day-to-day questions about bare metal nodes by combining
local Matchbox inventory with live cluster and DCIM state.

Main modules:
- core: configuration and error taxonomy
- inventory: Matchbox group loading and field queries
- kube: kubectl adapter and cluster reports (offline, oldest, version mismatch)
- hardware: SSH hardware probe
- dcim: Nautobot integration (optional)
- cli: the gimme command dispatcher
"""

__version__ = "0.3.0"
__author__ = "GIMME Maintainers"

DEFAULT_CONFIG_PATH = "~/.config/gimme/config"

__all__ = ["__version__", "__author__", "DEFAULT_CONFIG_PATH"]
