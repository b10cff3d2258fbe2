"""Event type constants."""


class EventTypes:
    """Event type string constants"""

    # combat
    COMBAT_STARTED = "combat_started"
    COMBAT_ENDED = "combat_ended"
    COMBAT_SESSION_CLOSED = "combat_session_closed"

    # progression
    LEVEL_UP = "level_up"

    # quest
    QUEST_ACCEPTED = "quest_accepted"
    QUEST_COMPLETED = "quest_completed"

    # item / shop
    ITEM_ADDED = "item_added"
    ITEM_USED = "item_used"
    SHOP_PURCHASED = "shop_purchased"

    # session
    LOCATION_CHANGED = "location_changed"
    NARRATIVE_PROCESSED = "narrative_processed"

    # persistence
    AUTO_SAVE_REQUESTED = "auto_save_requested"
