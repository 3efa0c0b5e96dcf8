from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

LatLng = Tuple[float, float]


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    TRANSIT = "transit"
    PLANE = "plane"
    BOAT = "boat"
    CONTAINER_SHIP = "container-ship"


GROUND_MODES = frozenset({TravelMode.DRIVING, TravelMode.WALKING, TravelMode.CYCLING, TravelMode.TRANSIT})
SEA_MODES = frozenset({TravelMode.BOAT, TravelMode.CONTAINER_SHIP})


class RouteState(str, Enum):
    IDLE = "idle"
    CALCULATING = "calculating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Waypoint(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    id: str = ""
    address: Optional[str] = None


class RouteStep(BaseModel):
    instruction: str
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    coordinates: List[LatLng] = Field(default_factory=list)
    segment_index: Optional[int] = None
    is_segment_start: bool = False
    segment_label: Optional[str] = None


class RouteLeg(BaseModel):
    label: str
    distance: str
    duration: str
    distance_meters: float
    duration_seconds: float


class RouteResult(BaseModel):
    distance: str
    duration: str
    cost: str
    steps: List[RouteStep] = Field(default_factory=list)
    geometry: List[LatLng] = Field(default_factory=list)
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    legs: List[RouteLeg] = Field(default_factory=list)

    def navigation_steps(self) -> List[RouteStep]:
        """Steps that take part in turn-by-turn numbering (segment headers excluded)."""
        return [step for step in self.steps if not step.is_segment_start]


class SavedRoute(BaseModel):
    id: str
    name: str
    origin: Waypoint
    destination: Waypoint
    waypoints: List[Waypoint] = Field(default_factory=list)
    travel_mode: TravelMode
    route_info: RouteResult
    geometry: List[LatLng] = Field(default_factory=list)
    color: str
    saved_at: int = Field(default=0, description="Epoch milliseconds")
    conversation_id: Optional[str] = None


class RouteRequest(BaseModel):
    points: List[Waypoint] = Field(..., description="Ordered: origin, waypoints..., destination")
    travel_mode: TravelMode = TravelMode.DRIVING
    auto_save: bool = True
    conversation_id: Optional[str] = None


class SavedRouteRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
