"""Card and Shoe classes - immutable cards dealt from the front of a shoe."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator


class Suit(Enum):
    """Card suits."""

    SPADES = auto()
    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()

    def __str__(self) -> str:
        return _SUIT_SYMBOLS[self]


_SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
}


class Rank(Enum):
    """Card ranks in deck order."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the point value before any Ace demotion (Ace = 11, faces = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE


_RANK_CODES = {str(rank): rank for rank in Rank}
_RANK_CODES["T"] = Rank.TEN

_SUIT_CODES = {
    "S": Suit.SPADES,
    "H": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "C": Suit.CLUBS,
}
_SUIT_CODES.update({symbol: suit for suit, symbol in _SUIT_SYMBOLS.items()})


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the point value with an Ace counted as 11."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '10♠', 'AS' or 'kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str not in _RANK_CODES:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_CODES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_CODES[rank_str], _SUIT_CODES[suit_str])


def fresh_deck() -> list[Card]:
    """Return the 52 cards of one deck in cross-product order (ranks × suits)."""
    return [Card(rank, suit) for rank in Rank for suit in Suit]


class Shoe:
    """The working deck that hands are dealt from."""

    def __init__(
        self,
        num_decks: int = 1,
        reshuffle_threshold: int = 20,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a shoe.

        Args:
            num_decks: Number of 52-card decks in the shoe
            reshuffle_threshold: Low-water mark; below this many remaining
                cards the shoe asks for a full reshuffle before the next deal
            rng: Random number generator for shuffling
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if not 0 <= reshuffle_threshold < num_decks * 52:
            raise ValueError("Reshuffle threshold must be below the shoe size")

        self._num_decks = num_decks
        self._reshuffle_threshold = reshuffle_threshold
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self.reset()

    @classmethod
    def stacked(
        cls,
        top_cards: Iterable[Card | str],
        rng: Random | None = None,
        **kwargs,
    ) -> "Shoe":
        """
        Build a shuffled shoe whose front holds the given cards in order.

        The stacked cards are removed from the rest of the shoe, so a
        single-deck shoe still holds no duplicates.
        """
        shoe = cls(rng=rng, **kwargs)
        shoe.shuffle()
        top = [c if isinstance(c, Card) else Card.from_string(c) for c in top_cards]
        rest = list(shoe._cards)
        for card in top:
            try:
                rest.remove(card)
            except ValueError:
                raise ValueError(f"Card {card} cannot be stacked twice") from None
        shoe._cards = top + rest
        return shoe

    def reset(self) -> None:
        """Reset the shoe to every card of every deck, unshuffled."""
        self._cards = [card for _ in range(self._num_decks) for card in fresh_deck()]

    def shuffle(self, in_play: Iterable[Card] = ()) -> None:
        """
        Collect all cards and shuffle them (Fisher–Yates).

        Args:
            in_play: Cards still on the table; they stay out of the new shoe
        """
        self.reset()
        for card in in_play:
            if card in self._cards:
                self._cards.remove(card)
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """Draw the card at the front of the shoe."""
        if not self._cards:
            raise IndexError("Cannot draw from empty shoe")
        return self._cards.pop(0)

    @property
    def needs_shuffle(self) -> bool:
        """Check if the remaining cards fell below the low-water mark."""
        return len(self._cards) < self._reshuffle_threshold

    @property
    def cards_remaining(self) -> int:
        return len(self._cards)

    @property
    def cards_dealt(self) -> int:
        return self.total_cards - len(self._cards)

    @property
    def total_cards(self) -> int:
        """Return the total number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        return self._num_decks

    @property
    def reshuffle_threshold(self) -> int:
        return self._reshuffle_threshold

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
