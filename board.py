"""
Board construction for Flux.
Builds a width x height grid of tiles in row-major order and links every tile
to each in-bounds tile a king's move away (up to 8 neighbours).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from models import ConfigurationError, Player, Tile

DEFAULT_BOARD_SIZE = 4

# Offsets of the 8 surrounding tiles
DIRECTIONS = [
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
]


def pos_to_index(x: int, y: int, width: int) -> int:
    """Convert (x, y) coordinates into a row-major tile index."""
    return width * y + x


def is_valid_tile(x: int, y: int, width: int, height: int) -> bool:
    return 0 <= x < width and 0 <= y < height


@dataclass
class Board:
    """Undirected graph of tiles. Links are fixed once the board is built."""
    width: int
    height: int
    tiles: List[Tile] = field(default_factory=list)

    def tile_at(self, x: int, y: int) -> Optional[Tile]:
        if not is_valid_tile(x, y, self.width, self.height):
            return None
        return self.tiles[pos_to_index(x, y, self.width)]

    def tile_by_index(self, index: int) -> Optional[Tile]:
        if 0 <= index < len(self.tiles):
            return self.tiles[index]
        return None

    def neighbors_of(self, tile: Tile) -> List[Tile]:
        return list(tile.neighbors)

    def empty_tiles(self) -> List[Tile]:
        return [t for t in self.tiles if t.is_empty]


def _link_tiles(board: Board) -> None:
    """Link each tile to its in-bounds king-move neighbours, once per pair."""
    for tile in board.tiles:
        for dx, dy in DIRECTIONS:
            other = board.tile_at(tile.x + dx, tile.y + dy)
            # Each pair is linked from its lower index so both ends get exactly one link
            if other is not None and other.index > tile.index:
                tile.add_link(other)
                other.add_link(tile)


def build_board(width: int = DEFAULT_BOARD_SIZE, height: int = DEFAULT_BOARD_SIZE) -> Board:
    """
    Build a linked board of width x height tiles.

    Args:
        width: Number of columns (at least 2)
        height: Number of rows (at least 2)

    Returns:
        Board with symmetric 8-directional neighbour links

    Raises:
        ConfigurationError: If the dimensions are not integers >= 2
    """
    for name, value in (('width', width), ('height', height)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"Board {name} must be an integer, got {value!r}")
        if value < 2:
            raise ConfigurationError(f"Board {name} must be at least 2, got {value}")

    board = Board(width=width, height=height)
    for y in range(height):
        for x in range(width):
            board.tiles.append(Tile(index=pos_to_index(x, y, width), x=x, y=y))

    _link_tiles(board)
    return board


def health_grid(board: Board) -> np.ndarray:
    """Occupant health per tile as a (height, width) array; 0 marks an empty tile."""
    grid = np.zeros((board.height, board.width), dtype=int)
    for tile in board.tiles:
        if tile.token is not None:
            grid[tile.y, tile.x] = tile.token.health
    return grid


def owner_grid(board: Board, players: List[Player]) -> np.ndarray:
    """Seat of each occupant's owner in players as a (height, width) array; -1 when empty."""
    seats: Dict[int, int] = {id(p): i for i, p in enumerate(players)}
    grid = np.full((board.height, board.width), -1, dtype=int)
    for tile in board.tiles:
        if tile.token is not None:
            grid[tile.y, tile.x] = seats.get(id(tile.token.owner), -1)
    return grid


def link_counts(board: Board) -> Dict[Tuple[int, int], int]:
    """Number of neighbours per (x, y), handy for checking board shape."""
    return {(t.x, t.y): len(t.neighbors) for t in board.tiles}
