from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from models import ConfigurationError, Tile, Token

# What a legal move turns into
COMBAT = "combat"
SPLIT = "split"
RELOCATION = "relocation"

# Match phases
AWAITING_MOVE = "awaiting_move"
ROUND_BOUNDARY = "round_boundary"
ANNOUNCING_ELIMINATION = "announcing_elimination"
ANNOUNCING_VICTORY = "announcing_victory"
TERMINATED = "terminated"


@dataclass
class MoveCommand:
    """An intended move from the presentation layer."""
    token_id: str
    tile_id: int  # Destination tile index
    split_amount: int = 0  # Health to send to an empty tile; 0 or full health moves the whole token


class IllegalMoveError(Exception):
    """Raised when a move is rejected. The match is left untouched and the caller may retry."""
    pass


def log_event(match, event: str, **kwargs) -> None:
    """
    Add an entry to the match log.

    Args:
        match: Current match
        event: Description of the event
        **kwargs: Additional event data to include
    """
    log_entry = {
        'round': match.round,
        'phase': match.phase,
        'event': event,
        **kwargs
    }
    match.log.append(log_entry)


def classify_move(token: Token, destination: Tile, split_amount: int = 0) -> str:
    """
    Work out what moving token onto destination would do, without doing it.

    Returns:
        COMBAT, SPLIT or RELOCATION

    Raises:
        IllegalMoveError: Destination is not reachable for this token
        ConfigurationError: split_amount is negative or exceeds the token's health
    """
    occupant = destination.token

    # Reserve tokens may only be placed on empty tiles
    if not token.on_board and occupant is not None:
        raise IllegalMoveError(f"Token {token.id} is off the board and tile {destination.index} is occupied")

    if token.on_board and destination not in token.valid_destinations():
        raise IllegalMoveError(f"Tile {destination.index} is not a valid destination for token {token.id}")

    if occupant is not None:
        return COMBAT

    if split_amount < 0 or split_amount > token.health:
        raise ConfigurationError(
            f"Split amount {split_amount} is outside 0..{token.health} for token {token.id}")

    if split_amount != 0 and split_amount != token.health:
        return SPLIT
    return RELOCATION


def validate_move(match, command: MoveCommand) -> Tuple[Token, Tile, str]:
    """Check a command against whose turn it is and the board. Returns (token, destination, kind)."""
    player = match.active_player
    token = match.find_token(command.token_id)
    if token is None:
        raise IllegalMoveError(f"Token {command.token_id} not found")

    if token.owner is not player:
        raise IllegalMoveError(f"Token {token.id} does not belong to the active player {player.id}")

    destination = match.board.tile_by_index(command.tile_id)
    if destination is None:
        raise IllegalMoveError(f"Tile {command.tile_id} is not on the board")

    kind = classify_move(token, destination, command.split_amount)
    return token, destination, kind


def preview_move(match, command: MoveCommand) -> Dict[str, Any]:
    """Describe what a command would do, for move previews. Never mutates the match."""
    summary: Dict[str, Any] = {
        'token_id': command.token_id,
        'tile_id': command.tile_id,
        'split_amount': command.split_amount,
        'legal': False,
        'kind': None,
        'error': None,
    }
    if match.phase != AWAITING_MOVE:
        summary['error'] = f"Cannot move during phase '{match.phase}'"
        return summary

    try:
        token, destination, kind = validate_move(match, command)
    except (IllegalMoveError, ConfigurationError) as e:
        summary['error'] = str(e)
        return summary

    summary['legal'] = True
    summary['kind'] = kind
    if kind == COMBAT:
        summary['resulting_health'] = token.health - destination.token.health
    elif kind == SPLIT:
        summary['resulting_health'] = token.health - command.split_amount
    else:
        summary['resulting_health'] = token.health
    return summary


def next_split_amount(current: int, health: int) -> int:
    """Step a pending split amount 1..health, rolling back over to 1."""
    if health < 1:
        raise ConfigurationError(f"Cannot split a token with health {health}")
    amount = current + 1
    if amount > health:
        amount = 1
    return amount


def get_move_summary(command: MoveCommand, token: Optional[Token] = None) -> Dict[str, Any]:
    """Summary of a command for API responses."""
    summary: Dict[str, Any] = {
        'token_id': command.token_id,
        'tile_id': command.tile_id,
        'split_amount': command.split_amount,
    }
    if token is not None:
        summary['health'] = token.health
        summary['on_board'] = token.on_board
    return summary
