"""
Value types for a route view. Nothing here is persisted; a Route lives only
as long as the view session that loaded it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

EncodedPath = str


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def as_dict(self) -> Dict[str, float]:
        return {"lat": round(self.latitude, 6), "lng": round(self.longitude, 6)}


@dataclass(frozen=True)
class Contact:
    name: Optional[str] = None
    phone: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "phone": self.phone}


@dataclass(frozen=True)
class Stop:
    """
    A boarding point. ``coordinate`` is None for legacy records that were
    never geocoded; such stops are listed but not plotted.
    """

    sequence: int
    label: str
    coordinate: Optional[Coordinate] = None

    @property
    def plottable(self) -> bool:
        return self.coordinate is not None

    def as_dict(self) -> Dict:
        return {
            "sno": self.sequence,
            "point": self.label,
            "location": self.coordinate.as_dict() if self.coordinate else None,
            "plottable": self.plottable,
        }


@dataclass(frozen=True)
class Route:
    id: str
    name: str = ""
    driver: Contact = field(default_factory=Contact)
    conductor: Contact = field(default_factory=Contact)
    path: Optional[EncodedPath] = None
    stops: Tuple[Stop, ...] = ()
    last_known_position: Optional[Coordinate] = None

    @property
    def plottable_stops(self) -> Tuple[Stop, ...]:
        return tuple(stop for stop in self.stops if stop.plottable)
