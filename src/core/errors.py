"""Domain exceptions shared by the core and the services."""


class GameError(Exception):
    """Base class for gameplay errors that carry a player-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ActionRejectedError(GameError):
    """A combat or inventory action cannot be performed; state is unchanged."""


class InsufficientAPError(ActionRejectedError):
    """Not enough action points to start an encounter."""


class NoActiveCombatError(GameError):
    """A combat operation was requested outside of combat."""


class UnknownItemError(GameError):
    """An item key is missing from the item registry.

    Raised at settlement or at startup validation. This is a configuration
    error, never a recoverable runtime condition.
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown item key: {key}")
        self.key = key


class NoCharacterError(GameError):
    """The session has no character yet (new game or load required)."""
