"""
Engine-to-presentation events.

The engine appends these to the match as it resolves moves and turn changes.
A presentation layer drains them and renders however it likes. Payloads hold
ids and coordinates only, so every event is JSON-serializable.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from models import Player, Tile, Token

TOKEN_HEALTH_CHANGED = "token_health_changed"
TOKEN_MOVED = "token_moved"
TOKEN_CREATED = "token_created"
TOKEN_REMOVED = "token_removed"
PLAYER_ELIMINATED = "player_eliminated"
GAME_WON = "game_won"
ROUND_COMPLETED = "round_completed"

# Elimination reasons
STALEMATE = "stalemate"
NO_TOKENS_ON_BOARD = "no_tokens_on_board"


@dataclass
class GameEvent:
    """One thing that happened. `type` is one of the constants above."""
    type: str
    payload: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


def tile_ref(tile: Optional[Tile]) -> Optional[Dict[str, int]]:
    if tile is None:
        return None
    return {"id": tile.index, "x": tile.x, "y": tile.y}


def token_health_changed(token: Token, old_health: int, new_health: int) -> GameEvent:
    return GameEvent(TOKEN_HEALTH_CHANGED, {
        "token_id": token.id,
        "player_id": token.owner.id,
        "old_health": old_health,
        "new_health": new_health,
    })


def token_moved(token: Token, from_tile: Optional[Tile], to_tile: Tile) -> GameEvent:
    return GameEvent(TOKEN_MOVED, {
        "token_id": token.id,
        "player_id": token.owner.id,
        "from": tile_ref(from_tile),
        "to": tile_ref(to_tile),
    })


def token_created(token: Token, tile: Tile, health: int) -> GameEvent:
    return GameEvent(TOKEN_CREATED, {
        "token_id": token.id,
        "player_id": token.owner.id,
        "tile": tile_ref(tile),
        "health": health,
    })


def token_removed(token: Token, tile: Optional[Tile]) -> GameEvent:
    return GameEvent(TOKEN_REMOVED, {
        "token_id": token.id,
        "player_id": token.owner.id,
        "tile": tile_ref(tile),
    })


def player_eliminated(player: Player, reason: str) -> GameEvent:
    return GameEvent(PLAYER_ELIMINATED, {
        "player_id": player.id,
        "name": player.name,
        "reason": reason,
    })


def game_won(player: Player) -> GameEvent:
    return GameEvent(GAME_WON, {
        "player_id": player.id,
        "name": player.name,
    })


def round_completed(round_number: int) -> GameEvent:
    return GameEvent(ROUND_COMPLETED, {"round": round_number})
