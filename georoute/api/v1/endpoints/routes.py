import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response

from georoute.models.routes import RouteRequest, RouteResult, SavedRoute, SavedRouteRename
from georoute.models.schemas import ConversationsResponse
from georoute.services.conversations import all_conversations_label, filter_by_conversation, list_conversations
from georoute.services.export import export_service
from georoute.services.pinned import pinned_location_store
from georoute.services.route_service import route_service
from georoute.services.saved_routes import saved_route_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/calculate", response_model=RouteResult)
async def calculate_route(request: RouteRequest, response: Response) -> RouteResult:
    """Calculate a route; backend failures surface as 503 through the app's error handler."""
    result, saved = await route_service.calculate_and_save(request)
    if saved is not None:
        response.headers["X-Saved-Route-Id"] = saved.id
    return result


@router.get("/saved", response_model=List[SavedRoute])
async def list_saved_routes(conversation_id: Optional[str] = Query(None)) -> List[SavedRoute]:
    return filter_by_conversation(saved_route_store.load(), conversation_id)


@router.get("/saved/{route_id}", response_model=SavedRoute)
async def get_saved_route(route_id: str) -> SavedRoute:
    route = saved_route_store.get(route_id)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return route


@router.patch("/saved/{route_id}", response_model=SavedRoute)
async def rename_saved_route(route_id: str, payload: SavedRouteRename) -> SavedRoute:
    route = saved_route_store.rename(route_id, payload.name.strip())
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return route


@router.delete("/saved/{route_id}", status_code=204)
async def delete_saved_route(route_id: str) -> Response:
    if not saved_route_store.remove(route_id):
        raise HTTPException(status_code=404, detail="Route not found")
    return Response(status_code=204)


@router.get("/saved/{route_id}/gpx")
async def export_saved_route_gpx(route_id: str) -> Response:
    route = saved_route_store.get(route_id)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return Response(
        content=export_service.generate_gpx(route),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="{route.id}.gpx"'},
    )


@router.get("/conversations", response_model=ConversationsResponse)
async def conversations() -> ConversationsResponse:
    summaries = list_conversations(pinned_location_store.load(), saved_route_store.load())
    return ConversationsResponse(label=all_conversations_label(summaries), conversations=summaries)
