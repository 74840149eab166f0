"""
Hardware probe module.

SSHes to a node and reports vendor, CPU, memory and disks.
"""

from gimme.hardware.models import Disk, HardwareInfo
from gimme.hardware.probe import HARDWARE_COMMANDS, HardwareProbe, parse_hardware

__all__ = ["Disk", "HardwareInfo", "HardwareProbe", "HARDWARE_COMMANDS", "parse_hardware"]
