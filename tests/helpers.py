"""Builders and checks shared by the test modules."""

from models import Player, Token
from state import Match

TWO_PLAYERS = {"board_width": 4, "board_height": 4, "player_count": 2, "starting_tokens_per_player": 4}
THREE_PLAYERS = {"board_width": 4, "board_height": 4, "player_count": 3, "starting_tokens_per_player": 4}


def put(match: Match, player: Player, x: int, y: int, health: int = 1) -> Token:
    """Create a token for player straight onto (x, y), bypassing turn order."""
    token = player.new_token(health=health)
    token.place(match.board.tile_at(x, y))
    return token


def place_reserve(match: Match, player: Player, x: int, y: int, health: int = 1) -> Token:
    """Put one of player's reserve tokens onto (x, y) directly."""
    token = player.reserve_tokens()[0]
    token.health = health
    token.place(match.board.tile_at(x, y))
    return token


def tile_id(match: Match, x: int, y: int) -> int:
    return match.board.tile_at(x, y).index


def assert_consistent(match: Match) -> None:
    """Tile/token occupancy and owner rosters agree everywhere."""
    live = set(id(p) for p in match.players)
    for player in match.players:
        for token in player.tokens:
            assert token.owner is player
            assert 1 <= token.health <= match.config["max_health"]
            if token.tile is not None:
                assert token.tile.token is token
    for tile in match.board.tiles:
        if tile.token is not None:
            assert tile.token.tile is tile
            assert id(tile.token.owner) in live
            assert tile.token in tile.token.owner.tokens
        assert len(tile.neighbors) <= 8


def create_api_game(client, **overrides):
    """Create a new game via API, return game_id."""
    resp = client.post("/api/game/new", json=overrides)
    assert resp.status_code == 200
    return resp.json["game_id"]
