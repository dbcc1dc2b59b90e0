import json

from renderers import (
    RENDERERS, MovePreview, PlacedToken, make_preview, placed_tokens,
    render_ascii_board, render_history, render_json, render_piece, seat_letter,
)
from state import get_match_summary
from tests.helpers import put


class TestPieces:
    def test_seat_letter(self):
        assert seat_letter('p1') == 'A'
        assert seat_letter('p4') == 'D'
        assert seat_letter('px') == '?'

    def test_render_piece_variants(self):
        placed = PlacedToken(token_id='p1_t1', player_id='p1', x=0, y=0, health=3)
        ghost = MovePreview(token_id='p2_t1', player_id='p2', x=1, y=0, health=2)
        assert placed.kind == 'placed'
        assert ghost.kind == 'preview'
        assert render_piece(placed) == 'A3 '
        assert render_piece(ghost) == 'b2 '

    def test_placed_tokens_skips_reserve(self, match):
        put(match, match.players[1], 2, 3, health=4)
        pieces = placed_tokens(get_match_summary(match))
        assert len(pieces) == 1
        assert (pieces[0].player_id, pieces[0].x, pieces[0].y, pieces[0].health) == ('p2', 2, 3, 4)

    def test_make_preview(self, match):
        put(match, match.players[0], 1, 1, health=4)
        view = get_match_summary(match)
        ghost = make_preview(view, 'p1_t5', 2, 2, 2)
        assert ghost == MovePreview(token_id='p1_t5', player_id='p1', x=2, y=2, health=2)
        # Occupied tile or unknown token
        assert make_preview(view, 'p1_t5', 1, 1, 2) is None
        assert make_preview(view, 'p9_t1', 0, 0, 1) is None


def test_render_ascii_board(match):
    put(match, match.players[0], 0, 0, health=2)
    put(match, match.players[1], 3, 3, health=5)
    view = get_match_summary(match)
    text = render_ascii_board(view)

    lines = text.splitlines()
    assert lines[0] == 'Round 1 | Phase: awaiting_move | To move: A'
    assert 'A2 ' in lines[4]
    assert 'B5 ' in lines[7]
    assert '  A Red: 1 on board, 4 in reserve <' in lines
    assert '  B Blue: 1 on board, 4 in reserve' in lines


def test_render_ascii_board_with_preview(match):
    view = get_match_summary(match)
    text = render_ascii_board(view, preview=make_preview(view, 'p1_t1', 1, 0, 1))
    assert 'a1 ' in text


def test_render_ascii_board_announcement(match):
    match.announcement = {'type': 'elimination', 'player_id': 'p2', 'name': 'Blue', 'reason': 'stalemate'}
    text = render_ascii_board(get_match_summary(match))
    assert '*** Blue: elimination ***' in text


def test_render_history():
    events = [
        {'type': 'token_moved', 'payload': {'token_id': 'p1_t1', 'from': None, 'to': {'id': 0, 'x': 0, 'y': 0}}},
        {'type': 'token_created', 'payload': {'token_id': 'p1_t5', 'tile': {'id': 1, 'x': 1, 'y': 0}, 'health': 2}},
        {'type': 'player_eliminated', 'payload': {'player_id': 'p2', 'name': 'Blue', 'reason': 'stalemate'}},
        {'type': 'player_eliminated', 'payload': {'player_id': 'p3', 'name': 'Green', 'reason': 'no_tokens_on_board'}},
        {'type': 'round_completed', 'payload': {'round': 3}},
        {'type': 'game_won', 'payload': {'player_id': 'p1', 'name': 'Red'}},
    ]
    text = render_history(events)
    assert text.splitlines()[0] == 'RECENT EVENTS:'
    assert 'p1_t1 moved reserve -> (0,0)' in text
    assert 'p1_t5 created at (1,0) with health 2' in text
    assert "Blue CAN'T MAKE A MOVE!" in text
    assert 'Green HAS BEEN DEFEATED!' in text
    assert 'FLUX! (end of round 3)' in text
    assert 'Red WINS!' in text

    assert render_history(events, max_events=1).splitlines() == ['RECENT EVENTS:', '  Red WINS!']
    assert render_history([]) == ''


def test_render_with_live_history(match):
    match.submit_move('p1_t1', 0)
    history = [e.to_dict() for e in match.drain_events()]
    text = render_ascii_board(get_match_summary(match), history=history)
    assert text.startswith('RECENT EVENTS:')
    assert 'To move: B' in text


def test_render_json(match):
    view = get_match_summary(match)
    ghost = make_preview(view, 'p1_t1', 0, 0, 1)
    data = json.loads(render_json(view, preview=ghost, history=[{'type': 'round_completed', 'payload': {'round': 1}}]))
    assert data['game_id'] == match.game_id
    assert data['preview'] == {'token_id': 'p1_t1', 'x': 0, 'y': 0, 'health': 1}
    assert len(data['recent_history']) == 1
    assert set(RENDERERS) == {'ascii', 'json'}
