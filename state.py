"""
Match state management for Flux.
Implements configuration loading, match setup and the turn/elimination/victory
state machine.

Turn cycle: the active player submits a move; before the next player takes a
turn they are checked for stalemate; when turn order wraps to the first player
the round boundary runs (board-state eliminations, victory check, Flux).
Eliminations and victory pause the match until the caller acknowledges them.
"""

from __future__ import annotations
import copy
import json
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from board import Board, build_board, health_grid, owner_grid
from events import (
    GameEvent, NO_TOKENS_ON_BOARD, STALEMATE,
    game_won, player_eliminated, token_removed,
)
from models import ConfigurationError, EngineInvariantError, MAX_HEALTH, Player, Token
from orders import (
    ANNOUNCING_ELIMINATION, ANNOUNCING_VICTORY, AWAITING_MOVE, ROUND_BOUNDARY, TERMINATED,
    IllegalMoveError, MoveCommand, log_event, validate_move,
)
from resolution import resolve_move
from upkeep import apply_round_flux, check_victory, find_board_eliminated

DEFAULT_PLAYER_SLOTS = [
    {'name': 'Red', 'color': '#d64541'},
    {'name': 'Blue', 'color': '#3a6fd8'},
    {'name': 'Green', 'color': '#3fa34d'},
    {'name': 'Yellow', 'color': '#e3b505'},
]

DEFAULT_CONFIG: Dict[str, Any] = {
    'board_width': 4,
    'board_height': 4,
    'player_count': 2,
    'starting_tokens_per_player': 4,
    'max_health': MAX_HEALTH,
    'player_slots': DEFAULT_PLAYER_SLOTS,
}

# camelCase names accepted from presentation-layer settings
CONFIG_ALIASES = {
    'boardWidth': 'board_width',
    'boardHeight': 'board_height',
    'playerCount': 'player_count',
    'startingTokensPerPlayer': 'starting_tokens_per_player',
    'maxHealth': 'max_health',
    'playerSlots': 'player_slots',
}

INT_KEYS = ['board_width', 'board_height', 'player_count', 'starting_tokens_per_player', 'max_health']

# Upper bounds on match size
MAX_BOARD_DIMENSION = 32
MAX_STARTING_TOKENS = 64


class MatchPhaseError(Exception):
    """Raised when a call does not fit the current phase (e.g. moving during an announcement)."""
    pass


def normalize_config(overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Map camelCase keys to their snake_case names and drop unknown keys."""
    normalized: Dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        key = CONFIG_ALIASES.get(key, key)
        if key in DEFAULT_CONFIG:
            normalized[key] = value
    return normalized


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load match configuration from config.json, falling back to defaults.

    Args:
        path: Config file to read (default: config.json beside this module)

    Returns:
        Complete configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = path or os.path.join(os.path.dirname(__file__), 'config.json')

    try:
        with open(config_path, 'r') as f:
            config.update(normalize_config(json.load(f)))
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        pass

    return config


def validate_config(config: Dict[str, Any]) -> None:
    """Raise ConfigurationError for any value the engine cannot start a match with."""
    for key in INT_KEYS:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")

    slots = config.get('player_slots')
    if not isinstance(slots, list) or not slots:
        raise ConfigurationError("player_slots must be a non-empty list")

    if config['player_count'] > len(slots):
        raise ConfigurationError(
            f"Attempted to use {config['player_count']} players but only {len(slots)} slots are available")
    if config['player_count'] < 2:
        raise ConfigurationError(f"A match needs at least 2 players, got {config['player_count']}")
    for key in ('board_width', 'board_height'):
        if config[key] > MAX_BOARD_DIMENSION:
            raise ConfigurationError(f"{key} must be at most {MAX_BOARD_DIMENSION}, got {config[key]}")
    if config['starting_tokens_per_player'] < 1:
        raise ConfigurationError("starting_tokens_per_player must be at least 1")
    if config['starting_tokens_per_player'] > MAX_STARTING_TOKENS:
        raise ConfigurationError(f"starting_tokens_per_player must be at most {MAX_STARTING_TOKENS}")
    if config['max_health'] < 1:
        raise ConfigurationError("max_health must be at least 1")


@dataclass
class Match:
    """
    Complete match state.

    players holds only live players, in turn order. current is the index of
    the player whose turn it is (or who just moved while an announcement is
    pending), and always points at a live player.
    """
    game_id: str
    board: Board
    players: List[Player] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG))
    current: int = 0
    round: int = 1
    phase: str = AWAITING_MOVE
    announcement: Optional[Dict[str, Any]] = None  # Pending elimination/victory message
    winner: Optional[Player] = None
    round_fluxed: bool = False  # Flux already applied at the pending boundary
    events: List[GameEvent] = field(default_factory=list)
    log: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def active_player(self) -> Player:
        return self.players[self.current]

    @property
    def is_over(self) -> bool:
        return self.phase in (ANNOUNCING_VICTORY, TERMINATED)

    def next_player_index(self) -> int:
        """Index of the player after the current one; 0 once the last player has moved."""
        if self.current >= len(self.players) - 1:
            return 0
        return self.current + 1

    def find_token(self, token_id: str) -> Optional[Token]:
        for player in self.players:
            token = player.get_token_by_id(token_id)
            if token:
                return token
        return None

    def emit(self, event: GameEvent) -> None:
        self.events.append(event)

    def drain_events(self) -> List[GameEvent]:
        """Hand pending events to the presentation layer and clear the queue."""
        drained = self.events
        self.events = []
        return drained

    # ------------------------------------------------------------------
    # Presentation-to-engine calls
    # ------------------------------------------------------------------

    def query_valid_destinations(self, token_id: str) -> List[int]:
        """Sorted tile ids the token could move to. Reserve tokens get every empty tile."""
        token = self.find_token(token_id)
        if token is None:
            raise IllegalMoveError(f"Token {token_id} not found")
        if token.on_board:
            return sorted(t.index for t in token.valid_destinations())
        return sorted(t.index for t in self.board.empty_tiles())

    def submit_move(self, token_id: str, tile_id: int, split_amount: int = 0) -> Dict[str, Any]:
        """Submit a move for the active player. See apply_command."""
        return self.apply_command(MoveCommand(token_id=token_id, tile_id=tile_id, split_amount=split_amount))

    def apply_command(self, command: MoveCommand) -> Dict[str, Any]:
        """
        Validate and apply a move, then advance the turn.

        Returns:
            Outcome dictionary from resolve_move plus the resulting phase

        Raises:
            MatchPhaseError: If the match is not waiting for a move
            IllegalMoveError: If the move is rejected (match unchanged)
            ConfigurationError: If the split amount exceeds the token's health (match unchanged)
        """
        if self.phase != AWAITING_MOVE:
            raise MatchPhaseError(f"Cannot move during phase '{self.phase}'")

        try:
            token, destination, _ = validate_move(self, command)
        except (IllegalMoveError, ConfigurationError) as e:
            log_event(self, f"Rejected move from {self.active_player.id}: {e}",
                      error_type=type(e).__name__, token_id=command.token_id, tile_id=command.tile_id)
            raise

        result = resolve_move(self, token, destination, command.split_amount)
        self.round_fluxed = False
        self._advance()
        result['phase'] = self.phase
        return result

    def acknowledge(self) -> str:
        """
        Resume after an elimination or victory announcement.

        Returns:
            The phase the match is in afterwards
        """
        if self.phase == ANNOUNCING_ELIMINATION:
            self.announcement = None
            self._advance()
        elif self.phase == ANNOUNCING_VICTORY:
            self.announcement = None
            self.phase = TERMINATED
            log_event(self, "Match terminated")
        else:
            raise MatchPhaseError(f"Nothing to acknowledge during phase '{self.phase}'")
        return self.phase

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _advance(self) -> None:
        try:
            self._step()
        except EngineInvariantError as e:
            self.phase = TERMINATED
            log_event(self, f"Engine error: {e}", error_type='invariant_violation')
            raise

    def _step(self) -> None:
        if not self.players:
            raise EngineInvariantError("No players left in the match")

        next_index = self.next_player_index()

        # A lone survivor goes straight to the round boundary for the win
        if len(self.players) > 1 and self.players[next_index].is_stalemated():
            self._eliminate(next_index, STALEMATE)
            return

        if next_index == 0:
            self.phase = ROUND_BOUNDARY

            dead = find_board_eliminated(self.players)
            if dead is not None:
                self._eliminate(dead, NO_TOKENS_ON_BOARD)
                return

            winner = check_victory(self)
            if winner is not None:
                self._announce_victory(winner)
                return

            if not self.round_fluxed:
                apply_round_flux(self)
                self.round += 1
                self.round_fluxed = True
                # Flux can leave the first player with nothing to move
                if len(self.players) > 1 and self.players[0].is_stalemated():
                    self._eliminate(0, STALEMATE)
                    return

        self.current = next_index
        self.phase = AWAITING_MOVE
        log_event(self, f"Turn passes to {self.active_player.id}", player_id=self.active_player.id)

    def _eliminate(self, index: int, reason: str) -> None:
        """Remove the player at index, keep current on a live player and pause."""
        player = self.players.pop(index)
        for token in player.tokens:
            self.emit(token_removed(token, token.tile))
        player.remove_all_tokens()

        if index <= self.current:
            self.current -= 1
        if self.current < 0:
            self.current = max(len(self.players) - 1, 0)

        self.phase = ANNOUNCING_ELIMINATION
        self.announcement = {'type': 'elimination', 'player_id': player.id, 'name': player.name, 'reason': reason}
        self.emit(player_eliminated(player, reason))

        if reason == STALEMATE:
            log_event(self, f"{player.name} can't make a move!", player_id=player.id, reason=reason)
        else:
            log_event(self, f"{player.name} has been defeated!", player_id=player.id, reason=reason)

    def _announce_victory(self, winner: Player) -> None:
        self.winner = winner
        self.current = 0
        self.phase = ANNOUNCING_VICTORY
        self.announcement = {'type': 'victory', 'player_id': winner.id, 'name': winner.name}
        self.emit(game_won(winner))
        log_event(self, f"{winner.name} wins!", winner_id=winner.id, final_round=self.round)


def create_player(player_id: str, name: str, color: str, token_count: int) -> Player:
    """
    Create a player with token_count reserve tokens of health 1.

    Args:
        player_id: Player identifier ('p1', 'p2', ...)
        name: Display name
        color: Presentation color, passed through untouched
        token_count: Number of starting tokens

    Returns:
        New Player instance with its reserve
    """
    player = Player(id=player_id, name=name, color=color)
    for _ in range(token_count):
        player.new_token(health=1)
    return player


def initialize_match(overrides: Optional[Dict[str, Any]] = None, config_path: Optional[str] = None) -> Match:
    """
    Initialize a new match from config.json plus any overrides.

    Args:
        overrides: Config values that take precedence over the file (camelCase or snake_case)
        config_path: Alternate config file

    Returns:
        Match waiting for the first player's move

    Raises:
        ConfigurationError: If the configuration cannot produce a valid match
    """
    config = load_config(config_path)
    config.update(normalize_config(overrides))
    validate_config(config)

    board = build_board(config['board_width'], config['board_height'])

    players = []
    for i, slot in enumerate(config['player_slots'][:config['player_count']], 1):
        if not isinstance(slot, dict):
            raise ConfigurationError(f"Player slot {i} must be an object with a name and color")
        players.append(create_player(
            f"p{i}",
            str(slot.get('name') or f"Player {i}"),
            str(slot.get('color') or ''),
            config['starting_tokens_per_player'],
        ))

    match = Match(game_id=str(uuid.uuid4()), board=board, players=players, config=config)
    log_event(match, f"Match started on a {board.width}x{board.height} board with {len(players)} players",
              players=[p.id for p in players])
    return match


def get_match_summary(match: Match) -> Dict[str, Any]:
    """
    Snapshot of the match for API responses and renderers.

    Args:
        match: Current match

    Returns:
        JSON-serializable dictionary
    """
    return {
        'game_id': match.game_id,
        'round': match.round,
        'phase': match.phase,
        'current_player': match.players[match.current].id if match.players else None,
        'announcement': match.announcement,
        'winner': match.winner.id if match.winner else None,
        'board': {
            'width': match.board.width,
            'height': match.board.height,
            'health': health_grid(match.board).tolist(),
            'owners': owner_grid(match.board, match.players).tolist(),
        },
        'players': [
            {
                'id': player.id,
                'name': player.name,
                'color': player.color,
                'active': i == match.current and match.phase == AWAITING_MOVE,
                'tokens': [
                    {
                        'id': token.id,
                        'health': token.health,
                        'tile': {'id': token.tile.index, 'x': token.tile.x, 'y': token.tile.y} if token.tile else None,
                    }
                    for token in player.tokens
                ]
            }
            for i, player in enumerate(match.players)
        ],
    }
