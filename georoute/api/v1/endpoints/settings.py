from fastapi import APIRouter

from georoute.models.schemas import MapStylePayload, TransportSettingsPayload
from georoute.models.settings import TransportSettings
from georoute.services.transport_settings import transport_settings_store

router = APIRouter()


def _payload(transport_settings: TransportSettings) -> TransportSettingsPayload:
    return TransportSettingsPayload(**transport_settings.to_record())


@router.get("/transport", response_model=TransportSettingsPayload)
async def get_transport_settings() -> TransportSettingsPayload:
    return _payload(transport_settings_store.load())


@router.put("/transport", response_model=TransportSettingsPayload)
async def update_transport_settings(payload: TransportSettingsPayload) -> TransportSettingsPayload:
    current = transport_settings_store.load().to_record()
    merged = TransportSettings(
        speeds={**current["speeds"], **payload.speeds},
        costs={**current["costs"], **payload.costs},
    )
    return _payload(transport_settings_store.save(merged))


@router.post("/transport/reset", response_model=TransportSettingsPayload)
async def reset_transport_settings() -> TransportSettingsPayload:
    return _payload(transport_settings_store.reset())


@router.get("/map-style", response_model=MapStylePayload)
async def get_map_style() -> MapStylePayload:
    return MapStylePayload(style=transport_settings_store.load_map_style())


@router.put("/map-style", response_model=MapStylePayload)
async def update_map_style(payload: MapStylePayload) -> MapStylePayload:
    return MapStylePayload(style=transport_settings_store.save_map_style(payload.style))
