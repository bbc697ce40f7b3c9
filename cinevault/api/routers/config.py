"""Configuration endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_config_store
from ..schemas import ConfigModel, ConfigUpdate
from ..stores.config_store import ConfigStore

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", response_model=ConfigModel)
def read_config(store: ConfigStore = Depends(get_config_store)) -> ConfigModel:
    """Return the current configuration."""
    return store.read()


@router.put("", response_model=ConfigModel)
def update_config(
    update: ConfigUpdate,
    store: ConfigStore = Depends(get_config_store),
) -> ConfigModel:
    """Update and return the configuration."""

    payload = update.model_copy()
    for key in ("tmdb_api_key", "omdb_api_key"):
        value = getattr(payload, key)
        if value is not None:
            # Blank keys clear the stored value.
            setattr(payload, key, value.strip() or None)

    return store.update(payload)
