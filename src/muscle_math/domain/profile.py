"""User profile inputs for plan generation."""

from dataclasses import dataclass
from enum import Enum


class SupportedStore(Enum):
    """Retailers offered in the store picker."""

    MEIJER = "Meijer"
    TARGET = "Target"
    COSTCO = "Costco"
    ALDI = "Aldi"
    WALMART = "Walmart"
    KROGER = "Kroger"
    WHOLE_FOODS = "Whole Foods"
    TRADER_JOES = "Trader Joe's"

    @classmethod
    def lookup(cls, name: str) -> "SupportedStore | None":
        """Return the store matching a display name, ignoring case and spacing."""
        wanted = name.strip().casefold()
        for store in cls:
            if store.value.casefold() == wanted:
                return store
        return None


@dataclass(frozen=True)
class UserProfile:
    """Biometric and dietary-goal inputs entered by the user."""

    age: int | None
    current_weight: float | None
    goal_weight: float | None
    store: str
    target_protein: float | None = None
    target_carbs: float | None = None
    target_fat: float | None = None

    @property
    def store_name(self) -> str:
        return self.store.strip()

    def macro_targets(self) -> list[tuple[str, float]]:
        """Return the macro targets that are set, in display order."""
        targets = [
            ("protein", self.target_protein),
            ("carbs", self.target_carbs),
            ("fat", self.target_fat),
        ]
        return [(label, value) for label, value in targets if value is not None]

    def has_macro_targets(self) -> bool:
        return bool(self.macro_targets())
