"""Legendary relic shop (万宝阁).

One relic is on offer at a time and rotates hourly. Purchased relics light
up the collection wall and grant their stat bonus without entering the
inventory. Owning every relic unlocks the Overlord Proof.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Optional

from src.core.errors import ActionRejectedError

logger = logging.getLogger(__name__)

LEGENDARY_SHOP_ITEMS: tuple[str, ...] = (
    "DRAGON_SLAYER",
    "AEGIS_SHIELD",
    "SAGE_GRIMOIRE",
    "GALE_BOOTS",
    "FORTUNE_COIN",
    "CROWN_OF_KINGS",
)
LEGENDARY_SHOP_PRICE = 10_000
SHOP_REFRESH_INTERVAL = 60 * 60  # seconds
OVERLORD_PROOF_KEY = "OVERLORD_PROOF"


@dataclass(frozen=True)
class ShopState:
    current_item_key: Optional[str] = None
    next_refresh_at: float = 0.0  # unix seconds
    purchased_keys: tuple[str, ...] = field(default_factory=tuple)
    achievement_claimed: bool = False

    @property
    def all_collected(self) -> bool:
        return len(self.purchased_keys) >= len(LEGENDARY_SHOP_ITEMS)

    def to_dict(self) -> dict:
        return {
            "current_item_key": self.current_item_key,
            "next_refresh_at": self.next_refresh_at,
            "purchased_keys": list(self.purchased_keys),
            "achievement_claimed": self.achievement_claimed,
        }

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> "ShopState":
        raw = raw or {}
        return cls(
            current_item_key=raw.get("current_item_key"),
            next_refresh_at=float(raw.get("next_refresh_at", 0.0)),
            purchased_keys=tuple(raw.get("purchased_keys", ())),
            achievement_claimed=bool(raw.get("achievement_claimed", False)),
        )


def refresh_shop(
    state: ShopState,
    now: float,
    force: bool = False,
    rng: Optional[random.Random] = None,
) -> ShopState:
    """Rotate the offer when due. Sold-out shops never rotate."""
    if state.all_collected or not (force or now >= state.next_refresh_at):
        return state

    rng = rng or random
    pool = [key for key in LEGENDARY_SHOP_ITEMS if key not in state.purchased_keys]
    next_item = rng.choice(pool) if pool else None
    return replace(state, current_item_key=next_item, next_refresh_at=now + SHOP_REFRESH_INTERVAL)


def purchase_current(state: ShopState, gold: int) -> tuple[ShopState, int]:
    """Buy the relic on offer. Returns (new state, remaining gold)."""
    key = state.current_item_key
    if key is None:
        raise ActionRejectedError("万宝阁当前没有上架的宝物")
    if gold < LEGENDARY_SHOP_PRICE:
        raise ActionRejectedError("金币不足")

    logger.info("Legendary relic purchased: %s", key)
    new_state = replace(
        state,
        purchased_keys=state.purchased_keys + (key,),
        current_item_key=None,
    )
    return new_state, gold - LEGENDARY_SHOP_PRICE


def claim_overlord_proof(state: ShopState) -> ShopState:
    if not state.all_collected:
        raise ActionRejectedError("尚未集齐全部传说宝物")
    if state.achievement_claimed:
        raise ActionRejectedError("霸主之证已经领取过了")
    return replace(state, achievement_claimed=True)
