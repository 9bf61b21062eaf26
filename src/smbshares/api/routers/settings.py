from fastapi import APIRouter, HTTPException

from smbshares.config.settings import PluginSettings, get_config
from smbshares.shares.store import ShareStore

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=PluginSettings)
def get_settings():
    return ShareStore(get_config()).load_settings()


@router.put("", response_model=PluginSettings)
def update_settings(settings: PluginSettings):
    store = ShareStore(get_config())
    if not store.save_settings(settings):
        raise HTTPException(status_code=500, detail="Failed to save settings")
    return settings
