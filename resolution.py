from typing import Any, Dict

from events import token_created, token_health_changed, token_moved, token_removed
from models import Tile, Token
from orders import COMBAT, SPLIT, RELOCATION, classify_move, log_event


def set_health(match, token: Token, value: int) -> None:
    """Change a token's health. At 0 or below the token leaves the game."""
    old_health = token.health
    token.health = value
    match.emit(token_health_changed(token, old_health, value))
    if value <= 0:
        destroy_token(match, token)


def destroy_token(match, token: Token) -> None:
    """Drop a token from its tile and its owner's roster."""
    tile = token.lift()
    token.owner.remove_token(token)
    match.emit(token_removed(token, tile))
    log_event(match, f"Token {token.id} ({token.owner.id}) removed", token_id=token.id, player_id=token.owner.id)


def relocate(match, token: Token, destination: Tile) -> None:
    origin = token.tile
    token.place(destination)
    match.emit(token_moved(token, origin, destination))


def resolve_move(match, token: Token, destination: Tile, split_amount: int = 0) -> Dict[str, Any]:
    """
    Apply one move. Exactly one of combat, split or relocation happens.

    Combat: the enemy on destination is destroyed and the mover loses the
    enemy's health, then takes the tile. Split: a new token with split_amount
    health appears on destination and the mover stays put. Relocation: the
    mover just moves.

    Args:
        match: Current match (event sink and log)
        token: The moving token
        destination: Target tile
        split_amount: Health to split off onto an empty tile

    Returns:
        Dictionary describing the outcome

    Raises:
        IllegalMoveError: If the destination is not reachable
        ConfigurationError: If split_amount exceeds the token's health
    """
    # Validates before anything is touched
    kind = classify_move(token, destination, split_amount)
    origin = token.tile
    result: Dict[str, Any] = {
        'kind': kind,
        'token_id': token.id,
        'from': origin.index if origin else None,
        'to': destination.index,
    }

    if kind == COMBAT:
        enemy = destination.token
        enemy_health = enemy.health
        result['captured'] = enemy.id
        set_health(match, enemy, 0)
        set_health(match, token, token.health - enemy_health)
        relocate(match, token, destination)
        log_event(match, f"Token {token.id} took {enemy.id} at ({destination.x},{destination.y}), health now {token.health}",
                  token_id=token.id, captured=enemy.id, tile_id=destination.index)

    elif kind == SPLIT:
        spawned = token.owner.new_token(health=split_amount)
        spawned.place(destination)
        match.emit(token_created(spawned, destination, split_amount))
        set_health(match, token, token.health - split_amount)
        result['created'] = spawned.id
        log_event(match, f"Token {token.id} split {split_amount} onto ({destination.x},{destination.y}) as {spawned.id}",
                  token_id=token.id, created=spawned.id, split_amount=split_amount, tile_id=destination.index)

    elif kind == RELOCATION:
        relocate(match, token, destination)
        log_event(match, f"Token {token.id} moved to ({destination.x},{destination.y})",
                  token_id=token.id, tile_id=destination.index)

    result['health'] = token.health
    return result
