# Models for the Flux board: tiles, tokens and the players that own them

from dataclasses import dataclass, field
from typing import List, Optional, Set

MAX_HEALTH = 5  # Flux wraps a token back to 1 above this
MAX_LINKS = 8  # King-move adjacency on a square grid


class ConfigurationError(Exception):
    """Raised when setup or a caller breaks a precondition. Nothing is mutated."""
    pass


class EngineInvariantError(Exception):
    """Raised when the engine reaches a state the rules say cannot happen."""
    pass


@dataclass(eq=False)
class Tile:
    """A single square of the board graph."""
    index: int  # Row-major position: y * width + x
    x: int
    y: int
    neighbors: List['Tile'] = field(default_factory=list, repr=False)  # Up to 8 linked tiles
    token: Optional['Token'] = field(default=None, repr=False)  # Occupant, if any

    def add_link(self, other: 'Tile') -> None:
        """Link this tile to a neighbour. More than 8 links is a board construction bug."""
        if other is self or other in self.neighbors:
            raise ConfigurationError(f"Tile {self.index} cannot link to tile {other.index} twice or to itself")
        if len(self.neighbors) >= MAX_LINKS:
            raise ConfigurationError(f"Maximum tile links exceeded on tile {self.index}")
        self.neighbors.append(other)

    @property
    def is_empty(self) -> bool:
        return self.token is None


@dataclass(eq=False)
class Token:
    """
    A numbered counter owned by one player.

    Health is always >= 1 while the token is in play; resolution code removes
    the token as soon as it drops to 0. A token with no tile sits in its
    owner's reserve, off the board.
    """
    id: str  # e.g. 'p1_t3'
    owner: 'Player' = field(repr=False)
    health: int = 1
    tile: Optional[Tile] = field(default=None, repr=False)

    @property
    def on_board(self) -> bool:
        return self.tile is not None

    def place(self, tile: Tile) -> bool:
        """Occupy tile, releasing the previous one. Returns False if already there."""
        if self.tile is tile:
            return False
        if tile.token is not None:
            raise EngineInvariantError(f"Tile {tile.index} is already occupied by {tile.token.id}")
        if self.tile is not None:
            self.tile.token = None
        self.tile = tile
        tile.token = self
        return True

    def lift(self) -> Optional[Tile]:
        """Take the token off the board, returning the tile it left."""
        old = self.tile
        if old is not None:
            old.token = None
            self.tile = None
        return old

    def valid_destinations(self) -> Set[Tile]:
        """Neighbouring tiles that are empty or hold a strictly weaker enemy."""
        destinations: Set[Tile] = set()
        if self.tile is None:
            return destinations

        for tile in self.tile.neighbors:
            occupant = tile.token
            if occupant is not None:
                if occupant.owner is self.owner:
                    continue
                if occupant.health >= self.health:
                    continue
            destinations.add(tile)
        return destinations

    def flux(self, max_health: int = MAX_HEALTH) -> None:
        """Grow by one, rolling over to 1 past max_health. Off-board tokens are untouched."""
        if self.tile is None:
            return
        if self.health >= max_health:
            self.health = 1
        else:
            self.health += 1


@dataclass(eq=False)
class Player:
    """A seat in the match. Owns every token whose owner field points here."""
    id: str  # 'p1', 'p2', ...
    name: str
    color: str = ''  # Passed through to the presentation layer untouched
    tokens: List[Token] = field(default_factory=list)
    spawned: int = 0  # Tokens ever created, used for id generation

    def new_token(self, health: int = 1) -> Token:
        """Create a token for this player's roster (off the board)."""
        self.spawned += 1
        token = Token(id=f"{self.id}_t{self.spawned}", owner=self, health=health)
        self.add_token(token)
        return token

    def add_token(self, token: Token) -> None:
        if token in self.tokens:
            raise EngineInvariantError(f"Player {self.id} already owns token {token.id}")
        if token.owner is not self:
            raise EngineInvariantError(f"Token {token.id} is owned by {token.owner.id}, not {self.id}")
        self.tokens.append(token)

    def remove_token(self, token: Token) -> None:
        if token in self.tokens:
            self.tokens.remove(token)

    def get_token_by_id(self, token_id: str) -> Optional[Token]:
        for token in self.tokens:
            if token.id == token_id:
                return token
        return None

    def on_board_tokens(self) -> List[Token]:
        return [t for t in self.tokens if t.on_board]

    def reserve_tokens(self) -> List[Token]:
        return [t for t in self.tokens if not t.on_board]

    def is_eliminated_by_board_state(self) -> bool:
        """True when none of this player's tokens occupies a tile."""
        return not any(t.on_board for t in self.tokens)

    def is_stalemated(self) -> bool:
        """
        True when the player cannot make a move.

        A player with no tokens at all is stalemated. A player whose tokens are
        all still in reserve is not: they can always place one.
        """
        if not self.tokens:
            return True

        for token in self.tokens:
            if token.valid_destinations():
                return False

        # Only reserve tokens left, like on the opening turn
        return not self.is_eliminated_by_board_state()

    def apply_flux(self, max_health: int = MAX_HEALTH) -> None:
        for token in self.tokens:
            token.flux(max_health)

    def remove_all_tokens(self) -> List[Token]:
        """Clear the roster and the board of this player's tokens."""
        removed = list(self.tokens)
        for token in removed:
            token.lift()
        self.tokens.clear()
        return removed
