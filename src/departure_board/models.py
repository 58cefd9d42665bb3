from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence


@dataclass(frozen=True)
class Station:
    name: str
    code: str


@dataclass(frozen=True)
class RequestedRoute:
    from_station: Station
    to_station: Optional[Station] = None


@dataclass(frozen=True)
class CallingPoint:
    name: str
    code: str
    scheduled_time: Optional[str]
    estimated_time: Optional[str]


@dataclass(frozen=True)
class ServiceDetails:
    service_id: str
    calling_points: Sequence[CallingPoint] = ()


@dataclass(frozen=True)
class RawService:
    """A service row as returned by the departure board call."""

    origin: Station
    destination: Station
    std: Optional[str]
    etd: Optional[str]
    platform: Optional[str]
    operator: Optional[str]
    service_id: str


@dataclass(frozen=True)
class BoardPage:
    nrcc_messages: Sequence[str] = ()
    train_services: Sequence[RawService] = ()
    bus_services: Sequence[RawService] = ()


@dataclass(frozen=True)
class ResolvedService:
    """A departure enriched with its arrival at the requested destination."""

    origin: Station
    destination: Station
    std: Optional[str]
    etd: Optional[str]
    platform: Optional[str]
    operator: Optional[str]
    service_id: str
    scheduled_arrival: Optional[str] = None
    estimated_arrival: Optional[str] = None
    arrival_station_name: Optional[str] = None
    arrival_matches_request: bool = False
    duration_minutes: Optional[int] = None
    duration_label: Optional[str] = None


@dataclass(frozen=True)
class DepartureBoard:
    origin_station: Station
    destination_station: Optional[Station]
    nrcc_messages: Sequence[str] = field(default_factory=tuple)
    train_services: Sequence[ResolvedService] = field(default_factory=tuple)
    bus_services: Sequence[ResolvedService] = field(default_factory=tuple)


@dataclass(frozen=True)
class DepartureResponse:
    board: DepartureBoard
    page_title: str
    from_code: str
    to_code: Optional[str] = None


@dataclass(frozen=True)
class ErrorResponse:
    page_title: str
    error_message: str
