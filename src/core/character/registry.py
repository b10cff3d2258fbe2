"""Item template registry: JSON load and instance creation."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from src.core.errors import UnknownItemError

from .models import CharacterStats, Item, ItemType, Rarity

logger = logging.getLogger(__name__)

DEFAULT_ITEMS_PATH = Path(__file__).resolve().parents[2] / "data" / "items.json"


@dataclass(frozen=True)
class ItemTemplate:
    """Immutable item definition. Loaded from items.json."""

    key: str  # "POTION"
    name: str
    description: str
    item_type: ItemType
    rarity: Rarity
    icon: str = ""
    price: Optional[int] = None
    stat_bonus: Optional[CharacterStats] = None
    is_food: bool = False


class ItemRegistry:
    """
    Item template store.
    Every reward key and shop key must resolve here.
    """

    def __init__(self) -> None:
        self._templates: dict[str, ItemTemplate] = {}

    def load_from_json(self, path: str | Path = DEFAULT_ITEMS_PATH) -> int:
        """Load templates from a JSON array. Returns the number loaded."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        count = 0
        for raw in raw_list:
            try:
                bonus = raw.get("stat_bonus")
                template = ItemTemplate(
                    key=raw["key"],
                    name=raw["name"],
                    description=raw.get("description", ""),
                    item_type=ItemType(raw["item_type"]),
                    rarity=Rarity(raw.get("rarity", "Common")),
                    icon=raw.get("icon", ""),
                    price=raw.get("price"),
                    stat_bonus=CharacterStats.from_dict(bonus) if bonus else None,
                    is_food=bool(raw.get("is_food", False)),
                )
                self.register(template)
                count += 1
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load item template %s: %s", raw.get("key", "?"), e)

        logger.info("Loaded %d item templates from %s", count, path)
        return count

    def register(self, template: ItemTemplate) -> None:
        if template.key in self._templates:
            logger.warning("Overwriting existing item template: %s", template.key)
        self._templates[template.key] = template

    def get(self, key: str) -> Optional[ItemTemplate]:
        return self._templates.get(key)

    def require(self, key: str) -> ItemTemplate:
        """Like get(), but a missing key is fatal."""
        template = self._templates.get(key)
        if template is None:
            raise UnknownItemError(key)
        return template

    def find_by_name(self, name: str) -> Optional[ItemTemplate]:
        for template in self._templates.values():
            if template.name == name:
                return template
        return None

    def __contains__(self, key: str) -> bool:
        return key in self._templates

    def keys(self) -> list[str]:
        return list(self._templates)

    def count(self) -> int:
        return len(self._templates)

    def create_instance(self, key: str, quantity: int = 1) -> Item:
        """Build a fresh inventory Item from a template.

        Consumables carry a quantity; other types never do.
        Raises UnknownItemError when the key is not registered.
        """
        template = self.require(key)
        return Item(
            id=f"item_{uuid.uuid4().hex[:12]}",
            name=template.name,
            description=template.description,
            item_type=template.item_type,
            rarity=template.rarity,
            icon=template.icon,
            quantity=quantity if template.item_type == ItemType.CONSUMABLE else None,
            stat_bonus=template.stat_bonus,
            template_key=template.key,
            price=template.price,
        )


def load_default_registry() -> ItemRegistry:
    registry = ItemRegistry()
    registry.load_from_json(DEFAULT_ITEMS_PATH)
    return registry
