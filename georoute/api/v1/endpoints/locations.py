import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query, Request, Response

from georoute.models.locations import DetectedLocation, PinnedLocation, PinnedLocationUpdate, SearchResult
from georoute.models.schemas import DetectRequest, ImportResponse, ScanRequest, ScanResponse
from georoute.services.conversations import conversation_scanner
from georoute.services.detection import location_detector
from georoute.services.export import export_service
from georoute.services.geocoding import geocoding_service
from georoute.services.pinned import pinned_location_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/detect", response_model=List[DetectedLocation])
async def detect_locations(request: DetectRequest) -> List[DetectedLocation]:
    return location_detector.detect(request.text, request.locale, source_message_id=request.source_message_id)


@router.post("/scan", response_model=ScanResponse)
async def scan_conversation(request: ScanRequest) -> ScanResponse:
    locations = await conversation_scanner.scan(request.messages, request.conversation_id, request.locale)
    return ScanResponse(conversation_id=conversation_scanner.conversation_id, locations=locations)


@router.get("/search", response_model=List[SearchResult])
async def search_locations(q: str = Query(..., min_length=1, max_length=300)) -> List[SearchResult]:
    return await geocoding_service.search(q)


@router.get("/pinned", response_model=List[PinnedLocation])
async def list_pinned() -> List[PinnedLocation]:
    return pinned_location_store.load()


@router.post("/pinned", response_model=PinnedLocation, status_code=201)
async def pin_location(location: PinnedLocation) -> PinnedLocation:
    pinned = pinned_location_store.add(location)
    if pinned is None:
        raise HTTPException(status_code=409, detail="Location already pinned")
    return pinned


@router.patch("/pinned/{location_id}", response_model=PinnedLocation)
async def update_pinned(location_id: str, updates: PinnedLocationUpdate) -> PinnedLocation:
    updated = pinned_location_store.update(location_id, updates)
    if updated is None:
        raise HTTPException(status_code=404, detail="Pinned location not found")
    return updated


@router.delete("/pinned/{location_id}", status_code=204)
async def unpin_location(location_id: str) -> Response:
    if not pinned_location_store.remove(location_id):
        raise HTTPException(status_code=404, detail="Pinned location not found")
    return Response(status_code=204)


@router.get("/pinned/export")
async def export_pinned() -> Response:
    locations = pinned_location_store.load()
    if not locations:
        raise HTTPException(status_code=404, detail="No points to export")
    return Response(
        content=export_service.generate_csv(locations),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="map-points.csv"'},
    )


@router.post("/pinned/import", response_model=ImportResponse)
async def import_pinned(request: Request) -> ImportResponse:
    body = (await request.body()).decode("utf-8", errors="replace")
    if not export_service.parse_csv(body):
        raise HTTPException(status_code=400, detail="No valid points found in CSV")
    return ImportResponse(imported=export_service.import_csv(body, store=pinned_location_store))
