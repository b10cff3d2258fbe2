"""World regions: level ranges, tiers, biomes and enemy-level scaling policy."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RegionTier(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"
    ENDGAME = "endgame"


class Biome(str, Enum):
    CAPITAL = "capital"
    PLAINS = "plains"
    FOREST = "forest"
    SWAMP = "swamp"
    RUINS = "ruins"
    CAVE = "cave"
    MOUNTAINS = "mountains"
    WASTELAND = "wasteland"


@dataclass(frozen=True)
class RegionScaling:
    """Enemy-level policy once the player outgrows a region.

    Up to ``level_max + static_buffer`` enemies stay inside the region range.
    Past that they follow the player with a tier-dependent offset.
    """

    enabled: bool = True
    static_buffer: int = 2
    min_diff_by_tier: dict[RegionTier, int] = field(
        default_factory=lambda: {
            RegionTier.LOW: -3,
            RegionTier.MID: -1,
            RegionTier.HIGH: 1,
            RegionTier.ENDGAME: 2,
        }
    )
    max_diff_by_tier: dict[RegionTier, int] = field(
        default_factory=lambda: {
            RegionTier.LOW: -1,
            RegionTier.MID: 1,
            RegionTier.HIGH: 3,
            RegionTier.ENDGAME: 4,
        }
    )


DEFAULT_SCALING = RegionScaling()


@dataclass(frozen=True)
class RegionConfig:
    id: str
    name: str
    level_min: int
    level_max: int
    tier: RegionTier
    biomes: frozenset[Biome]
    scaling: RegionScaling = DEFAULT_SCALING


WORLD_REGIONS: tuple[RegionConfig, ...] = (
    RegionConfig("capital_starter", "王都初始区", 1, 3, RegionTier.LOW, frozenset({Biome.CAPITAL})),
    RegionConfig("capital_downtown", "王都市区", 2, 5, RegionTier.LOW, frozenset({Biome.CAPITAL})),
    RegionConfig(
        "plains_outskirts", "郊外平原", 3, 6, RegionTier.LOW, frozenset({Biome.PLAINS, Biome.FOREST})
    ),
    RegionConfig("forest_entrance", "森林入口", 4, 7, RegionTier.MID, frozenset({Biome.FOREST})),
    RegionConfig(
        "forest_depths", "森林深处", 6, 10, RegionTier.MID, frozenset({Biome.FOREST, Biome.SWAMP})
    ),
    RegionConfig(
        "ancient_ruins", "古代遗迹", 8, 12, RegionTier.MID, frozenset({Biome.RUINS, Biome.CAVE})
    ),
    RegionConfig(
        "mountain_foothills",
        "山脉山麓",
        10,
        14,
        RegionTier.HIGH,
        frozenset({Biome.MOUNTAINS, Biome.PLAINS}),
    ),
    RegionConfig(
        "mountain_peaks", "山脉顶峰", 13, 18, RegionTier.HIGH, frozenset({Biome.MOUNTAINS, Biome.CAVE})
    ),
    RegionConfig(
        "cursed_wasteland",
        "诅咒荒地",
        15,
        22,
        RegionTier.HIGH,
        frozenset({Biome.WASTELAND, Biome.RUINS}),
    ),
    RegionConfig(
        "void_chasm",
        "虚空深渊",
        20,
        30,
        RegionTier.ENDGAME,
        frozenset({Biome.WASTELAND, Biome.CAVE, Biome.RUINS}),
    ),
)

LOCATION_REGION_MAP: dict[str, str] = {
    # capital
    "王都阿斯拉 - 中央广场": "capital_starter",
    "王都阿斯拉 - 贵族区": "capital_downtown",
    "王都阿斯拉 - 商业区": "capital_downtown",
    "王都阿斯拉 - 下城区": "capital_starter",
    "王都阿斯拉 - 训练场": "capital_starter",
    # outskirts
    "郊外 - 田野": "plains_outskirts",
    "郊外 - 小路": "plains_outskirts",
    "郊外 - 村庄": "plains_outskirts",
    # forest
    "翡翠森林 - 入口": "forest_entrance",
    "翡翠森林 - 林间小径": "forest_entrance",
    "翡翠森林 - 深林": "forest_depths",
    "翡翠森林 - 迷雾区": "forest_depths",
    "翡翠森林 - 沼泽边缘": "forest_depths",
    # ruins
    "古代遗迹 - 外围": "ancient_ruins",
    "古代遗迹 - 大厅": "ancient_ruins",
    "古代遗迹 - 地下墓室": "ancient_ruins",
    "古代遗迹 - 禁地": "ancient_ruins",
    # mountains
    "暮光山脉 - 山脚": "mountain_foothills",
    "暮光山脉 - 山腰": "mountain_foothills",
    "暮光山脉 - 山顶": "mountain_peaks",
    "暮光山脉 - 雪峰": "mountain_peaks",
    "暮光山脉 - 洞穴": "mountain_peaks",
    # wasteland
    "诅咒之地 - 边界": "cursed_wasteland",
    "诅咒之地 - 废墟": "cursed_wasteland",
    "诅咒之地 - 深渊裂隙": "void_chasm",
    "诅咒之地 - 虚空核心": "void_chasm",
}

DEFAULT_LOCATION = "王都阿斯拉 - 中央广场"

# warn when character level + this is still below the region minimum
DANGER_SOFT_THRESHOLD = 2

_REGIONS_BY_ID = {region.id: region for region in WORLD_REGIONS}


def get_region_by_id(region_id: str) -> Optional[RegionConfig]:
    return _REGIONS_BY_ID.get(region_id)


def get_region_by_location(location: str) -> Optional[RegionConfig]:
    region_id = LOCATION_REGION_MAP.get(location)
    if region_id is None:
        return None
    return _REGIONS_BY_ID.get(region_id)


def is_location_mapped(location: str) -> bool:
    return location in LOCATION_REGION_MAP


def is_dangerous(region: RegionConfig, character_level: int) -> bool:
    return character_level + DANGER_SOFT_THRESHOLD < region.level_min


def danger_warning(region: RegionConfig, character_level: int) -> str:
    return (
        f"⚠️ 你隐约察觉这里的魔物异常危险（推荐等级 ≥ {region.level_min} 级），"
        f"而你目前只有 {character_level} 级。"
    )
