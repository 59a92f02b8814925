"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends

from index_discovery.config import Settings, get_settings
from index_discovery.query_configs import get_collection_configs
from index_discovery.schemas.query import CollectionConfig

# Common dependencies that can be injected into route handlers
SettingsDep = Annotated[Settings, Depends(get_settings)]
CollectionConfigsDep = Annotated[tuple[CollectionConfig, ...], Depends(get_collection_configs)]
