"""Legendary relic shop state transitions."""

import random

import pytest

from src.core.errors import ActionRejectedError
from src.core.shop import (
    LEGENDARY_SHOP_ITEMS,
    LEGENDARY_SHOP_PRICE,
    SHOP_REFRESH_INTERVAL,
    ShopState,
    claim_overlord_proof,
    purchase_current,
    refresh_shop,
)


class TestRefresh:
    def test_not_due(self):
        state = ShopState(current_item_key="GALE_BOOTS", next_refresh_at=1000.0)
        assert refresh_shop(state, now=999.0) is state

    def test_due_rotates_and_schedules(self):
        state = ShopState(next_refresh_at=1000.0)
        refreshed = refresh_shop(state, now=1000.0, rng=random.Random(0))
        assert refreshed.current_item_key in LEGENDARY_SHOP_ITEMS
        assert refreshed.next_refresh_at == 1000.0 + SHOP_REFRESH_INTERVAL

    def test_never_offers_owned_relic(self):
        owned = LEGENDARY_SHOP_ITEMS[:-1]
        state = ShopState(purchased_keys=owned)
        refreshed = refresh_shop(state, now=0.0, force=True, rng=random.Random(3))
        assert refreshed.current_item_key == LEGENDARY_SHOP_ITEMS[-1]

    def test_sold_out_shop_is_frozen(self):
        state = ShopState(purchased_keys=LEGENDARY_SHOP_ITEMS)
        assert refresh_shop(state, now=10**10, force=True) is state


class TestPurchase:
    def test_purchase(self):
        state = ShopState(current_item_key="FORTUNE_COIN")
        new_state, gold = purchase_current(state, 12_000)
        assert gold == 12_000 - LEGENDARY_SHOP_PRICE
        assert new_state.purchased_keys == ("FORTUNE_COIN",)
        assert new_state.current_item_key is None

    def test_not_enough_gold(self):
        state = ShopState(current_item_key="FORTUNE_COIN")
        with pytest.raises(ActionRejectedError):
            purchase_current(state, LEGENDARY_SHOP_PRICE - 1)

    def test_nothing_on_offer(self):
        with pytest.raises(ActionRejectedError):
            purchase_current(ShopState(), 99_999)


class TestOverlordProof:
    def test_claim_once(self):
        state = ShopState(purchased_keys=LEGENDARY_SHOP_ITEMS)
        claimed = claim_overlord_proof(state)
        assert claimed.achievement_claimed is True
        with pytest.raises(ActionRejectedError):
            claim_overlord_proof(claimed)

    def test_incomplete_collection(self):
        with pytest.raises(ActionRejectedError):
            claim_overlord_proof(ShopState(purchased_keys=LEGENDARY_SHOP_ITEMS[:2]))


def test_dict_round_trip():
    state = ShopState("AEGIS_SHIELD", 123.5, ("GALE_BOOTS",), False)
    assert ShopState.from_dict(state.to_dict()) == state
    assert ShopState.from_dict(None) == ShopState()
