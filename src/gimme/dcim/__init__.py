"""
DCIM module.

Optional Nautobot integration: device status, rack location and notes.
"""

from gimme.dcim.client import NautobotClient
from gimme.dcim.models import DcimDevice, DcimNote, RackLocation

__all__ = ["NautobotClient", "DcimDevice", "DcimNote", "RackLocation"]
