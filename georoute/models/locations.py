from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LocationKind(str, Enum):
    COORDINATES = "coordinates"
    ADDRESS = "address"
    MAPS_LINK = "maps_link"


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class DetectedLocation(BaseModel):
    id: str
    text: str = Field(..., description="Original matched span")
    kind: LocationKind
    coordinates: Optional[Coordinate] = None
    address: Optional[str] = None
    formatted_address: Optional[str] = None
    source_message_id: Optional[str] = None
    timestamp: Optional[str] = None
    author: Optional[str] = None


class PinnedLocation(BaseModel):
    id: str
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    original_text: str = ""
    address: Optional[str] = None
    display_name: Optional[str] = None
    pinned_at: int = Field(default=0, description="Epoch milliseconds")
    conversation_id: Optional[str] = None


class PinnedLocationUpdate(BaseModel):
    display_name: Optional[str] = None
    address: Optional[str] = None
    original_text: Optional[str] = None


class ConversationMessage(BaseModel):
    id: str
    content: str = ""
    timestamp: Optional[str] = None
    author: Optional[str] = None


class SearchResult(BaseModel):
    lat: float
    lon: float
    display_name: str
    place_id: Optional[int] = None


class ConversationSummary(BaseModel):
    id: str
    label: str
    points_count: int = 0
    routes_count: int = 0
