# models.py
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


DOCTOR = "doctor"
HOSPITAL = "hospital"
PROVIDER_KINDS = (DOCTOR, HOSPITAL)


@dataclass(frozen=True)
class Location:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float


@dataclass
class WorkingHour:
    """
    One day of a provider's weekly schedule.

    start_time / end_time are kept as the provider wrote them
    (e.g. "09:00" or "9:00 AM"); both are empty strings on closed days.
    """
    day: str
    start_time: str
    end_time: str
    is_open: bool


@dataclass
class CareProvider:
    """
    A normalized doctor or hospital built from one place record.

    kind:
        "doctor" or "hospital"

    display_name:
        Person name for doctors (or the generic placeholder),
        institution name for hospitals.

    affiliation:
        Hospital / clinic the provider belongs to. Equal to display_name
        when the record itself is an institution.

    distance_km:
        Only set when the caller supplied a reference location.
    """
    id: str
    kind: str
    display_name: str
    title: str
    specialty: str
    affiliation: str
    address: str
    phone: str
    location: Location
    working_hours: List[WorkingHour]
    rating: Optional[float] = None
    review_count: Optional[int] = None
    distance_km: Optional[float] = None
    accepts_appointments: bool = True
    types: List[str] = field(default_factory=list)


@dataclass
class SearchPage:
    """One page of ranked providers plus the provider's continuation token."""
    providers: List[CareProvider]
    next_page_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_page_token is not None


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached first page.

    captured_at is a reading of the cache's clock (monotonic seconds by
    default), not a wall-clock datetime. providers holds the cache's own
    copies and must never be handed out as is.
    """
    providers: Tuple[CareProvider, ...]
    captured_at: float
    next_page_token: Optional[str] = None


@dataclass
class Pharmacy:
    """An on-duty pharmacy. On-duty pharmacies stay open around the clock."""
    id: str
    name: str
    address: str
    phone: str
    location: Location
    district: str
    province: str
    is_on_duty: bool = True
    duty_start: str = "08:00"
    duty_end: str = "08:00"
    distance_km: Optional[float] = None
