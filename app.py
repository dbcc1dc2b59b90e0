import threading
from typing import Any, Dict, Optional, Tuple

from flask import Flask, request, jsonify
from flask_cors import CORS

from models import ConfigurationError, EngineInvariantError
from orders import IllegalMoveError, MoveCommand, get_move_summary, preview_move
from renderers import RENDERERS, make_preview
from state import Match, MatchPhaseError, get_match_summary, initialize_match
from upkeep import get_upkeep_summary

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, Match] = {}  # In-memory storage for matches
locks: Dict[str, threading.Lock] = {}  # One lock per match; every call into a match holds it


def _get_match(game_id: str) -> Tuple[Optional[Match], Optional[threading.Lock]]:
    return games.get(game_id), locks.get(game_id)


def _require_int(data: Dict[str, Any], key: str) -> int:
    """JSON integer from the body. Floats, strings and booleans are rejected, not coerced."""
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return value


def _parse_move(data: Dict[str, Any], match: Match) -> MoveCommand:
    """Build a MoveCommand from a request body. Accepts tile_id or x/y coordinates."""
    token_id = data.get('token_id')
    if not isinstance(token_id, str) or not token_id:
        raise ValueError('token_id is required')

    if 'tile_id' in data:
        tile_id = _require_int(data, 'tile_id')
    elif 'x' in data and 'y' in data:
        tile = match.board.tile_at(_require_int(data, 'x'), _require_int(data, 'y'))
        if tile is None:
            raise IllegalMoveError(f"Tile ({data['x']},{data['y']}) is not on the board")
        tile_id = tile.index
    else:
        raise ValueError('Move needs tile_id or x and y')

    split_amount = _require_int(data, 'split_amount') if 'split_amount' in data else 0
    return MoveCommand(token_id=token_id, tile_id=tile_id, split_amount=split_amount)


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Create a new match. The body may override any config value."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Config overrides must be a JSON object'}), 400

    try:
        match = initialize_match(data)
    except ConfigurationError as e:
        return jsonify({'error': f'Invalid configuration: {str(e)}'}), 400

    games[match.game_id] = match
    locks[match.game_id] = threading.Lock()
    return jsonify({'game_id': match.game_id})


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the current match snapshot."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    with lock:
        return jsonify(get_match_summary(match))


@app.route('/api/game/<game_id>/tokens/<token_id>/destinations', methods=['GET'])
def get_destinations(game_id: str, token_id: str):
    """Tile ids the token may move to (every empty tile for a reserve token)."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    with lock:
        try:
            destinations = match.query_valid_destinations(token_id)
        except IllegalMoveError as e:
            return jsonify({'error': str(e)}), 404
        return jsonify({'token_id': token_id, 'destinations': destinations})


@app.route('/api/game/<game_id>/move', methods=['POST'])
def submit_move(game_id: str):
    """Submit a move for the active player."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON data'}), 400

    with lock:
        try:
            command = _parse_move(data, match)
            outcome = match.apply_command(command)
        except (ValueError, TypeError) as e:
            return jsonify({'error': f'Invalid move data: {str(e)}'}), 400
        except (IllegalMoveError, MatchPhaseError) as e:
            return jsonify({'error': str(e)}), 400
        except ConfigurationError as e:
            return jsonify({'error': f'Invalid split: {str(e)}'}), 400
        except EngineInvariantError as e:
            return jsonify({'error': f'Engine error: {str(e)}'}), 500

        return jsonify({
            'move': get_move_summary(command),
            'outcome': outcome,
            'events': [e.to_dict() for e in match.drain_events()],
            'state': get_match_summary(match),
        })


@app.route('/api/game/<game_id>/preview', methods=['POST'])
def preview(game_id: str):
    """Describe what a move would do without applying it."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON data'}), 400

    with lock:
        try:
            command = _parse_move(data, match)
        except (ValueError, TypeError, IllegalMoveError) as e:
            return jsonify({'error': f'Invalid move data: {str(e)}'}), 400
        return jsonify(preview_move(match, command))


@app.route('/api/game/<game_id>/acknowledge', methods=['POST'])
def acknowledge(game_id: str):
    """Resume the match after an elimination or victory announcement."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    with lock:
        try:
            phase = match.acknowledge()
        except MatchPhaseError as e:
            return jsonify({'error': str(e)}), 400
        except EngineInvariantError as e:
            return jsonify({'error': f'Engine error: {str(e)}'}), 500

        return jsonify({
            'phase': phase,
            'events': [e.to_dict() for e in match.drain_events()],
            'state': get_match_summary(match),
        })


@app.route('/api/game/<game_id>/upkeep', methods=['GET'])
def get_upkeep(game_id: str):
    """Board presence per player, as checked at the round boundary."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    with lock:
        return jsonify(get_upkeep_summary(match))


@app.route('/api/game/<game_id>/events', methods=['GET'])
def get_events(game_id: str):
    """Drain pending engine events."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    with lock:
        return jsonify({'game_id': game_id, 'events': [e.to_dict() for e in match.drain_events()]})


@app.route('/api/game/<game_id>/log', methods=['GET'])
def get_game_log(game_id: str):
    """Retrieve the full match log."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    with lock:
        return jsonify({
            'game_id': game_id,
            'round': match.round,
            'phase': match.phase,
            'log': match.log,
        })


@app.route('/api/game/<game_id>/board', methods=['GET'])
def get_board(game_id: str):
    """Rendered board. ?format=ascii|json picks the renderer; ?token_id=&x=&y=&amount= adds a move preview."""
    match, lock = _get_match(game_id)
    if match is None:
        return jsonify({'error': 'Game not found'}), 404

    fmt = request.args.get('format', 'ascii')
    if fmt not in RENDERERS:
        return jsonify({'error': f"Unknown format '{fmt}', expected one of {sorted(RENDERERS)}"}), 400

    with lock:
        view = get_match_summary(match)
        ghost = None
        token_id = request.args.get('token_id')
        if token_id:
            try:
                x = int(request.args.get('x', ''))
                y = int(request.args.get('y', ''))
                amount = int(request.args.get('amount', 1))
            except ValueError:
                return jsonify({'error': 'x, y and amount must be integers'}), 400
            ghost = make_preview(view, token_id, x, y, amount)
        mimetype = 'application/json' if fmt == 'json' else 'text/plain'
        return app.response_class(RENDERERS[fmt](view, preview=ghost), mimetype=mimetype)


if __name__ == '__main__':
    app.run(debug=True)
