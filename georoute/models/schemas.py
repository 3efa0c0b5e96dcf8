from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from georoute.models.locations import ConversationMessage, ConversationSummary, DetectedLocation
from georoute.models.settings import MapStyle


class DetectRequest(BaseModel):
    text: str
    locale: Optional[str] = None
    source_message_id: Optional[str] = None


class ScanRequest(BaseModel):
    conversation_id: Optional[str] = None
    locale: Optional[str] = None
    messages: List[ConversationMessage] = Field(default_factory=list)


class ScanResponse(BaseModel):
    conversation_id: Optional[str] = None
    locations: List[DetectedLocation] = Field(default_factory=list)


class ImportResponse(BaseModel):
    imported: int


class TransportSettingsPayload(BaseModel):
    speeds: Dict[str, float] = Field(default_factory=dict)
    costs: Dict[str, float] = Field(default_factory=dict)


class MapStylePayload(BaseModel):
    style: MapStyle


class ConversationsResponse(BaseModel):
    label: str
    conversations: List[ConversationSummary] = Field(default_factory=list)
