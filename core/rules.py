"""Table rule configuration."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class RuleSet:
    """
    Blackjack table rules.

    Every rule that changes how a round is dealt or paid lives here, so the
    resolver never re-derives them ad hoc.
    """

    # Net bonus on a natural, as a multiple of the wager (3:2 = 1.5, 2:1 = 2.0)
    blackjack_payout_multiplier: Decimal = Decimal("1.5")

    # Dealer draws while below this total, soft totals included
    dealer_stand_threshold: int = 17

    # Shoe configuration
    num_decks: int = 1
    reshuffle_threshold: int = 20

    # Player reaching 21 by hitting ends the turn without a stand
    auto_stand_on_21: bool = False

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        # Accept floats and strings from configuration sources
        object.__setattr__(
            self,
            "blackjack_payout_multiplier",
            Decimal(str(self.blackjack_payout_multiplier)),
        )
        if self.blackjack_payout_multiplier < 1:
            raise ValueError("blackjack_payout_multiplier must be at least 1")
        if not 2 <= self.dealer_stand_threshold <= 21:
            raise ValueError("dealer_stand_threshold must be between 2 and 21")
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if not 0 <= self.reshuffle_threshold < self.num_decks * 52:
            raise ValueError("reshuffle_threshold must be below the shoe size")

    @classmethod
    def three_to_two(cls) -> "RuleSet":
        """Naturals pay 3:2."""
        return cls(blackjack_payout_multiplier=Decimal("1.5"))

    @classmethod
    def two_to_one(cls) -> "RuleSet":
        """Naturals pay 2:1."""
        return cls(blackjack_payout_multiplier=Decimal("2"))

    def to_dict(self) -> dict[str, object]:
        """Serialize the rules to JSON-friendly values."""
        return {
            "blackjack_payout_multiplier": str(self.blackjack_payout_multiplier),
            "dealer_stand_threshold": self.dealer_stand_threshold,
            "num_decks": self.num_decks,
            "reshuffle_threshold": self.reshuffle_threshold,
            "auto_stand_on_21": self.auto_stand_on_21,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "RuleSet":
        """Rebuild rules from ``to_dict`` output."""
        return cls(
            blackjack_payout_multiplier=Decimal(str(data["blackjack_payout_multiplier"])),
            dealer_stand_threshold=int(data["dealer_stand_threshold"]),
            num_decks=int(data["num_decks"]),
            reshuffle_threshold=int(data["reshuffle_threshold"]),
            auto_stand_on_21=bool(data["auto_stand_on_21"]),
        )
