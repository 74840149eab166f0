"""
Nautobot result models.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DcimDevice(BaseModel):
    """The subset of a Nautobot device gimme reports on."""

    name: str
    status: Optional[str] = None
    role: Optional[str] = None
    serial: Optional[str] = None
    location: Optional[str] = Field(None, description="Location (Nautobot 2.x) or site (1.x)")
    rack: Optional[str] = None
    position: Optional[float] = Field(None, description="Lowest rack unit occupied")
    face: Optional[str] = None
    comments: Optional[str] = None


class RackLocation(BaseModel):
    name: str
    location: Optional[str] = None
    rack: Optional[str] = None
    position: Optional[float] = None
    face: Optional[str] = None

    def describe(self) -> str:
        """One-line location such as 'dc1 / r12 / U14 (front)'."""
        if not self.rack:
            return f"{self.location} / not racked" if self.location else "not racked"
        parts = [p for p in (self.location, self.rack) if p]
        if self.position is not None:
            parts.append(f"U{self.position:g}")
        text = " / ".join(parts)
        return f"{text} ({self.face})" if self.face else text


class DcimNote(BaseModel):
    note: str
    author: Optional[str] = None
    created: Optional[str] = None
