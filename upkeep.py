"""
Round boundary handling for Flux.
Runs when turn order wraps back to the first player:

- Find players with no tokens left on the board
- Check for a lone survivor
- Apply Flux: every on-board token gains 1 health, rolling over to 1 past the maximum
"""

from typing import Dict, List, Optional

from events import round_completed, token_health_changed
from models import EngineInvariantError, Player
from orders import log_event


def find_board_eliminated(players: List[Player]) -> Optional[int]:
    """
    Index of the first player with no tokens on the board.

    Args:
        players: Players in turn order

    Returns:
        Index into players, or None if everyone still has a token on a tile
    """
    for i, player in enumerate(players):
        if player.is_eliminated_by_board_state():
            return i
    return None


def check_victory(match) -> Optional[Player]:
    """
    Return the winner if exactly one player remains.

    Raises:
        EngineInvariantError: If no players remain; the rules always leave a survivor
    """
    if len(match.players) == 0:
        raise EngineInvariantError("No players left in the match")
    if len(match.players) == 1:
        winner = match.players[0]
        if winner is None:
            raise EngineInvariantError("Winning player reference is missing")
        return winner
    return None


def apply_round_flux(match) -> Dict[str, Dict[str, int]]:
    """
    Flux every remaining player's tokens.

    Returns:
        Mapping of player id -> {token id: new health} for tokens that changed
    """
    results: Dict[str, Dict[str, int]] = {}
    max_health = match.config['max_health']

    for player in match.players:
        before = {t.id: t.health for t in player.tokens}
        player.apply_flux(max_health)

        changed = {}
        for token in player.tokens:
            if token.health != before[token.id]:
                changed[token.id] = token.health
                match.emit(token_health_changed(token, before[token.id], token.health))
        results[player.id] = changed

        if changed:
            log_event(match, f"Flux: {player.id} tokens now {changed}", player_id=player.id, healths=changed)

    match.emit(round_completed(match.round))
    log_event(match, f"Round {match.round} completed")
    return results


def get_upkeep_summary(match) -> Dict:
    """
    Per-player board presence for the round boundary.

    Args:
        match: Current match

    Returns:
        Dictionary with round number and each player's token counts
    """
    summary = {
        'round': match.round,
        'phase': match.phase,
        'players': {}
    }

    for player in match.players:
        summary['players'][player.id] = {
            'on_board': len(player.on_board_tokens()),
            'reserve': len(player.reserve_tokens()),
            'total_health': sum(t.health for t in player.on_board_tokens()),
            'eliminated_by_board_state': player.is_eliminated_by_board_state(),
            'stalemated': player.is_stalemated(),
        }

    return summary
