"""Enemy template pool.

Base stats are level-1 values; the generator scales them. Family, element
and biome tags only steer template selection.
"""

from dataclasses import dataclass

from src.core.world.regions import Biome

from .models import Rank

_CAPITAL = Biome.CAPITAL
_PLAINS = Biome.PLAINS
_FOREST = Biome.FOREST
_SWAMP = Biome.SWAMP
_RUINS = Biome.RUINS
_CAVE = Biome.CAVE
_MOUNTAINS = Biome.MOUNTAINS
_WASTELAND = Biome.WASTELAND


@dataclass(frozen=True)
class EnemyTemplate:
    key: str
    name: str
    base_hp: int
    base_attack: int
    base_defense: int
    family: str
    element: str
    biomes: frozenset[Biome]


@dataclass(frozen=True)
class TreasureTemplate(EnemyTemplate):
    gold_reward: int = 0


def _t(key, name, hp, atk, df, family, element, *biomes) -> EnemyTemplate:
    return EnemyTemplate(key, name, hp, atk, df, family, element, frozenset(biomes))


ENEMY_TEMPLATES: dict[Rank, tuple[EnemyTemplate, ...]] = {
    Rank.D: (
        _t("goblin_scout", "哥布林斥候", 60, 6, 2, "goblin", "none", _PLAINS, _FOREST),
        _t("road_bandit", "路边强盗", 65, 7, 2, "human", "none", _PLAINS, _CAPITAL),
        _t("wild_boar", "野猪", 70, 7, 3, "beast", "none", _PLAINS, _FOREST),
        _t("young_treant", "幼年树人", 75, 6, 4, "plant", "nature", _FOREST),
        _t("cave_bat", "洞穴蝙蝠", 55, 6, 2, "beast", "dark", _CAVE),
        _t("blue_slime", "蓝色史莱姆", 50, 5, 2, "slime", "water", _PLAINS, _FOREST, _SWAMP),
        _t("bone_soldier", "骸骨士兵", 65, 7, 3, "undead", "dark", _RUINS),
        _t("sewer_rat", "下水道巨鼠", 55, 5, 1, "beast", "none", _CAPITAL),
        _t("cave_spider", "洞穴蜘蛛", 60, 6, 3, "insect", "poison", _CAVE, _FOREST),
        _t("training_dummy", "训练木桩", 45, 4, 1, "construct", "none", _CAPITAL),
        _t("stone_golem", "石像傀儡", 80, 5, 5, "construct", "earth", _RUINS, _MOUNTAINS),
        _t("imp_devil", "小恶魔", 55, 7, 2, "demon", "fire", _WASTELAND, _CAVE),
        _t("forest_fairy", "森林精灵", 60, 5, 3, "fairy", "nature", _FOREST),
        _t("angry_shroom", "愤怒蘑菇", 55, 6, 2, "plant", "poison", _FOREST, _SWAMP),
        _t("baby_drake", "幼年飞龙", 80, 8, 3, "dragon", "fire", _MOUNTAINS),
        _t("soft_ghost", "柔弱幽灵", 50, 5, 1, "undead", "dark", _RUINS, _CAPITAL),
    ),
    Rank.C: (
        _t("feral_tiger", "野性猛虎", 120, 12, 5, "beast", "none", _FOREST, _PLAINS),
        _t("werewolf", "狼人", 130, 13, 6, "beast", "dark", _FOREST),
        _t("sea_serpent", "海洋巨蛇", 140, 14, 5, "serpent", "water", _SWAMP),
        _t("vampire_lord", "吸血领主", 120, 16, 4, "undead", "dark", _RUINS, _CAPITAL),
        _t("mounted_knight", "骑乘骑士", 135, 13, 7, "human", "none", _PLAINS, _CAPITAL),
        _t("dark_vizier", "黑暗宰相", 110, 17, 5, "human", "dark", _CAPITAL),
        _t("proud_griffin", "傲翼狮鹫", 130, 14, 6, "beast", "wind", _MOUNTAINS),
        _t("frost_ogre", "冰霜食人魔", 150, 15, 8, "giant", "ice", _MOUNTAINS, _CAVE),
        _t("fire_dragon", "火焰巨龙", 150, 18, 7, "dragon", "fire", _MOUNTAINS, _WASTELAND),
        _t("dark_ranger", "暗影游侠", 115, 16, 4, "human", "dark", _FOREST),
        _t("bone_general", "白骨将军", 140, 17, 7, "undead", "dark", _RUINS),
        _t("sea_medusa", "海妖美杜莎", 125, 15, 6, "serpent", "water", _SWAMP, _RUINS),
        _t("spiked_colossus", "棘刺巨像", 155, 14, 9, "construct", "earth", _RUINS, _CAVE),
        _t("hell_knight", "地狱骑士", 145, 18, 8, "demon", "fire", _WASTELAND),
        _t("goblin_airship", "哥布林飞艇", 130, 13, 6, "goblin", "wind", _PLAINS, _MOUNTAINS),
        _t("shadow_ninja", "影子忍者", 115, 17, 4, "human", "dark", _CAPITAL, _FOREST),
    ),
    Rank.B: (
        _t("rune_colossus", "符文巨像", 220, 22, 14, "construct", "arcane", _RUINS),
        _t("death_knight", "死亡骑士", 210, 26, 13, "undead", "dark", _RUINS, _WASTELAND),
        _t("crystal_giant", "水晶巨人", 230, 24, 15, "giant", "earth", _CAVE, _MOUNTAINS),
        _t("iron_champion", "钢铁勇士", 200, 23, 16, "human", "none", _CAPITAL, _PLAINS),
        _t("rune_gargoyle", "符文石像鬼", 210, 21, 12, "construct", "arcane", _RUINS, _MOUNTAINS),
    ),
    Rank.A: (
        _t("inferno_dragon", "炼狱巨龙", 340, 38, 22, "dragon", "fire", _MOUNTAINS, _WASTELAND),
        _t("infernal_lord", "炼狱魔君", 320, 40, 24, "demon", "fire", _WASTELAND),
        _t("blaze_phoenix", "烈焰凤凰", 310, 36, 20, "beast", "fire", _MOUNTAINS),
        _t("arcane_sage", "奥术贤者", 300, 34, 18, "human", "arcane", _RUINS),
        _t("cosmos_dragon", "宇宙巨龙", 360, 42, 23, "dragon", "arcane", _WASTELAND, _CAVE),
        _t("void_horror", "虚空恐魔", 330, 39, 21, "aberration", "dark", _WASTELAND, _CAVE, _RUINS),
    ),
}


def _treasure(key, name, hp, atk, df, gold, *biomes) -> TreasureTemplate:
    return TreasureTemplate(
        key, name, hp, atk, df, "treasure", "none", frozenset(biomes), gold_reward=gold
    )


TREASURE_TEMPLATES: tuple[TreasureTemplate, ...] = (
    _treasure("gem_beetle", "宝石甲虫", 45, 3, 4, 900, _CAVE, _MOUNTAINS),
    _treasure("royal_slime", "皇家史莱姆", 60, 3, 3, 1000, _PLAINS, _CAPITAL),
    _treasure("cursed_chest", "诅咒宝箱", 55, 4, 4, 1200, _RUINS),
    _treasure("starlight_sprite", "星光精灵", 40, 2, 3, 850, _FOREST),
    _treasure("rainbow_avatar", "彩虹化身", 50, 3, 3, 1100, _WASTELAND, _SWAMP),
)
