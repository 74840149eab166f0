"""
Hardware probe result models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class Disk(BaseModel):
    """A whole block device (partitions are not listed)."""

    name: str
    size_bytes: int = 0


class HardwareInfo(BaseModel):
    """
    Hardware facts parsed from a node's command output.

    Fields stay None when the corresponding command failed (e.g. the DMI
    serial is only readable by root).
    """

    target: str = Field(..., description="Host or IP the session was opened to")
    hostname: Optional[str] = None
    kernel: Optional[str] = None
    vendor: Optional[str] = None
    product: Optional[str] = None
    serial: Optional[str] = None
    cpu_model: Optional[str] = None
    cpu_count: Optional[int] = None
    memory_kb: Optional[int] = Field(None, description="MemTotal from /proc/meminfo")
    disks: List[Disk] = Field(default_factory=list)
