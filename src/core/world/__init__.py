from .regions import (
    DEFAULT_LOCATION,
    LOCATION_REGION_MAP,
    WORLD_REGIONS,
    Biome,
    RegionConfig,
    RegionScaling,
    RegionTier,
    get_region_by_id,
    get_region_by_location,
)

__all__ = [
    "DEFAULT_LOCATION",
    "LOCATION_REGION_MAP",
    "WORLD_REGIONS",
    "Biome",
    "RegionConfig",
    "RegionScaling",
    "RegionTier",
    "get_region_by_id",
    "get_region_by_location",
]
