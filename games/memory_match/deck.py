"""
Cards, decks and the deck builder.

A deal picks ``pair_count`` distinct image ids from the pool, makes two
cards per id, shuffles them uniformly and lays them out row by row on the
board grid.
"""

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from games.memory_match.errors import DeckInvariantError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """Grid slot of a placed card."""
    row: int
    col: int
    index: int


@dataclass
class Card:
    """
    A single card.

    Only ``is_flipped`` and ``is_matched`` change once the card is placed.
    """
    id: str
    image_id: int
    is_flipped: bool = False
    is_matched: bool = False
    position: Optional[Position] = None

    @property
    def is_face_up(self) -> bool:
        return self.is_flipped or self.is_matched

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "image_id": self.image_id,
            "is_flipped": self.is_flipped,
            "is_matched": self.is_matched,
            "position": (
                {"row": self.position.row, "col": self.position.col, "index": self.position.index}
                if self.position else None
            ),
        }


@dataclass
class Deck:
    """Placed cards in grid order (``cards[i].position.index == i``)."""
    cards: List[Card]
    grid_cols: int
    grid_rows: int
    _by_id: Dict[str, Card] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self._by_id = {card.id: card for card in self.cards}

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._by_id

    def get(self, card_id: str) -> Optional[Card]:
        return self._by_id.get(card_id)

    def at(self, row: int, col: int) -> Card:
        """Return the card at a grid slot."""
        if not (0 <= row < self.grid_rows and 0 <= col < self.grid_cols):
            raise IndexError(f"Slot ({row}, {col}) is outside the {self.grid_cols}x{self.grid_rows} grid")
        return self.cards[row * self.grid_cols + col]

    @property
    def pair_count(self) -> int:
        return len(self.cards) // 2

    @property
    def matched_count(self) -> int:
        return sum(1 for c in self.cards if c.is_matched)

    def validate(self) -> None:
        """
        Check the board invariants.

        Raises:
            DeckInvariantError: If the card count does not fill the grid,
                an image id does not appear exactly twice, ids repeat, or a
                position disagrees with the card's index.
        """
        expected = self.grid_cols * self.grid_rows
        if len(self.cards) != expected:
            raise DeckInvariantError(
                f"Deck has {len(self.cards)} cards, grid needs {expected}"
            )
        if len(self._by_id) != len(self.cards):
            raise DeckInvariantError("Card ids are not unique")

        counts = Counter(c.image_id for c in self.cards)
        bad = sorted(image_id for image_id, n in counts.items() if n != 2)
        if bad:
            raise DeckInvariantError(f"Image ids not paired exactly twice: {bad}")

        for index, card in enumerate(self.cards):
            expected_pos = Position(index // self.grid_cols, index % self.grid_cols, index)
            if card.position != expected_pos:
                raise DeckInvariantError(
                    f"Card {card.id} at index {index} has position {card.position}"
                )


class DeckBuilder:
    """
    Builds shuffled, positioned decks.

    Pass ``rng`` or ``seed`` for reproducible deals; by default an unseeded
    ``random.Random`` is used.

    Example:
        builder = DeckBuilder(seed=42)
        deck = builder.build(image_pool_size=21, pair_count=16)
    """

    def __init__(
        self,
        grid_cols: int = 8,
        grid_rows: int = 4,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        if grid_cols < 1 or grid_rows < 1:
            raise InvalidInputError(f"Invalid grid {grid_cols}x{grid_rows}")
        self.grid_cols = grid_cols
        self.grid_rows = grid_rows
        self._rng = rng if rng is not None else random.Random(seed)

    def build(self, image_pool_size: int, pair_count: int) -> Deck:
        """
        Deal a new deck.

        Args:
            image_pool_size: Image ids are drawn from ``1..image_pool_size``
            pair_count: Number of distinct images (pairs) on the board

        Returns:
            A validated Deck with every card face down

        Raises:
            InvalidInputError: If the pool or pair count is unusable
            DeckInvariantError: If the dealt cards do not fill the grid
        """
        if pair_count < 1:
            raise InvalidInputError(f"pair_count must be positive, got {pair_count}")
        if image_pool_size < pair_count:
            raise InvalidInputError(
                f"Cannot pick {pair_count} distinct images from a pool of {image_pool_size}"
            )

        image_ids = self.select_images(image_pool_size, pair_count)

        cards: List[Card] = []
        for i, image_id in enumerate(image_ids):
            cards.append(Card(id=f"card-{i * 2}", image_id=image_id))
            cards.append(Card(id=f"card-{i * 2 + 1}", image_id=image_id))

        # random.shuffle is Fisher-Yates: every permutation equally likely
        self._rng.shuffle(cards)

        grid_size = self.grid_cols * self.grid_rows
        if len(cards) != grid_size:
            raise DeckInvariantError(
                f"Dealt {len(cards)} cards for a {self.grid_cols}x{self.grid_rows} grid "
                f"({grid_size} slots)"
            )

        placed = [
            Card(
                id=card.id,
                image_id=card.image_id,
                position=Position(index // self.grid_cols, index % self.grid_cols, index),
            )
            for index, card in enumerate(cards)
        ]
        deck = Deck(placed, self.grid_cols, self.grid_rows)
        deck.validate()

        logger.info(
            "Dealt %d cards (%d pairs) on a %dx%d grid",
            len(deck), pair_count, self.grid_cols, self.grid_rows,
        )
        return deck

    def select_images(self, image_pool_size: int, count: int) -> List[int]:
        """Pick ``count`` distinct ids uniformly from ``1..image_pool_size``."""
        return self._rng.sample(range(1, image_pool_size + 1), count)
