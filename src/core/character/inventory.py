"""Inventory list operations.

All functions take an inventory list and return a new list; the input is
never modified.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from .models import CharacterStats, Item, ItemType, MAX_STACK

logger = logging.getLogger(__name__)


def add_item(inventory: list[Item], item: Item) -> list[Item]:
    """Add an item.

    Consumables stack by name up to MAX_STACK. Quantity beyond the cap is
    dropped silently and no second stack with the same name is opened.
    Other item types always take a new slot.
    """
    if item.item_type != ItemType.CONSUMABLE:
        return [*inventory, item]

    incoming = item.quantity if item.quantity is not None else 1
    for index, existing in enumerate(inventory):
        if existing.item_type == ItemType.CONSUMABLE and existing.name == item.name:
            current = existing.quantity if existing.quantity is not None else 1
            space_left = MAX_STACK - current
            if space_left <= 0:
                logger.debug("Stack full, discarding %d x %s", incoming, item.name)
                return list(inventory)
            added = min(space_left, incoming)
            if added < incoming:
                logger.debug("Stack overflow, discarding %d x %s", incoming - added, item.name)
            updated = list(inventory)
            updated[index] = replace(existing, quantity=current + added)
            return updated

    return [*inventory, replace(item, quantity=min(incoming, MAX_STACK))]


def remove_item(inventory: list[Item], item_id: str) -> list[Item]:
    return [i for i in inventory if i.id != item_id]


def find_item(inventory: list[Item], item_id: str) -> Optional[Item]:
    for item in inventory:
        if item.id == item_id:
            return item
    return None


def find_consumable_index(inventory: list[Item], name: str) -> Optional[int]:
    """Index of the first consumable named ``name`` with quantity > 0."""
    for index, item in enumerate(inventory):
        quantity = item.quantity if item.quantity is not None else 1
        if item.item_type == ItemType.CONSUMABLE and item.name == name and quantity > 0:
            return index
    return None


def consume_at(inventory: list[Item], index: int) -> list[Item]:
    """Decrement the consumable at ``index``; remove the slot when it hits 0."""
    updated = list(inventory)
    item = updated[index]
    remaining = (item.quantity if item.quantity is not None else 1) - 1
    if remaining <= 0:
        del updated[index]
    else:
        updated[index] = replace(item, quantity=remaining)
    return updated


def consume_one(inventory: list[Item], item_id: str) -> list[Item]:
    for index, item in enumerate(inventory):
        if item.id == item_id:
            if item.item_type != ItemType.CONSUMABLE:
                return list(inventory)
            return consume_at(inventory, index)
    return list(inventory)


def sum_stat_bonuses(bonuses: Iterable[Optional[CharacterStats]]) -> CharacterStats:
    total = CharacterStats()
    for bonus in bonuses:
        if bonus is not None:
            total = total + bonus
    return total
