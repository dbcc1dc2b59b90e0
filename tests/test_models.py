"""Tests for the data model layer."""

import pytest

from board import build_board
from models import MAX_HEALTH, ConfigurationError, EngineInvariantError, Player, Tile, Token


def _two_players():
    return Player(id='p1', name='Red'), Player(id='p2', name='Blue')


class TestTile:
    def test_create_tile(self):
        t = Tile(index=5, x=1, y=1)
        assert t.is_empty
        assert t.neighbors == []

    def test_link_limit(self):
        centre = Tile(index=0, x=0, y=0)
        for i in range(1, 9):
            centre.add_link(Tile(index=i, x=i, y=0))
        with pytest.raises(ConfigurationError):
            centre.add_link(Tile(index=9, x=9, y=0))
        assert len(centre.neighbors) == 8

    def test_no_duplicate_or_self_links(self):
        a = Tile(index=0, x=0, y=0)
        b = Tile(index=1, x=1, y=0)
        a.add_link(b)
        with pytest.raises(ConfigurationError):
            a.add_link(b)
        with pytest.raises(ConfigurationError):
            a.add_link(a)


class TestToken:
    def test_new_token_is_in_reserve(self):
        p1, _ = _two_players()
        t = p1.new_token()
        assert t.id == 'p1_t1'
        assert t.health == 1
        assert not t.on_board
        assert t.valid_destinations() == set()

    def test_place_keeps_both_sides_in_sync(self):
        board = build_board(3, 3)
        p1, _ = _two_players()
        t = p1.new_token()
        assert t.place(board.tile_at(0, 0))
        assert board.tile_at(0, 0).token is t

        assert t.place(board.tile_at(1, 0))
        assert board.tile_at(0, 0).token is None
        assert board.tile_at(1, 0).token is t
        assert t.tile is board.tile_at(1, 0)

        # Same tile again is a no-op
        assert t.place(board.tile_at(1, 0)) is False

    def test_place_on_occupied_tile_is_an_engine_error(self):
        board = build_board(3, 3)
        p1, p2 = _two_players()
        p1.new_token().place(board.tile_at(0, 0))
        with pytest.raises(EngineInvariantError):
            p2.new_token().place(board.tile_at(0, 0))

    def test_lift(self):
        board = build_board(3, 3)
        p1, _ = _two_players()
        t = p1.new_token()
        t.place(board.tile_at(2, 2))
        assert t.lift() is board.tile_at(2, 2)
        assert board.tile_at(2, 2).is_empty
        assert t.lift() is None

    def test_valid_destinations(self):
        board = build_board(3, 3)
        p1, p2 = _two_players()
        mover = p1.new_token(health=3)
        mover.place(board.tile_at(1, 1))
        friend = p1.new_token(health=1)
        friend.place(board.tile_at(0, 0))
        weaker = p2.new_token(health=2)
        weaker.place(board.tile_at(1, 0))
        equal = p2.new_token(health=3)
        equal.place(board.tile_at(2, 0))
        stronger = p2.new_token(health=4)
        stronger.place(board.tile_at(0, 1))

        dests = mover.valid_destinations()
        assert board.tile_at(0, 0) not in dests
        assert board.tile_at(2, 0) not in dests
        assert board.tile_at(0, 1) not in dests
        assert board.tile_at(1, 0) in dests
        # Remaining four neighbours are empty
        assert len(dests) == 5

    def test_flux_increments(self):
        board = build_board(2, 2)
        p1, _ = _two_players()
        t = p1.new_token(health=2)
        t.place(board.tile_at(0, 0))
        t.flux()
        assert t.health == 3

    def test_flux_wraps_at_max(self):
        board = build_board(2, 2)
        p1, _ = _two_players()
        t = p1.new_token(health=MAX_HEALTH)
        t.place(board.tile_at(0, 0))
        t.flux()
        assert t.health == 1

    def test_flux_ignores_reserve(self):
        p1, _ = _two_players()
        t = p1.new_token(health=2)
        t.flux()
        assert t.health == 2


class TestPlayer:
    def test_create_player(self):
        p = Player(id='p1', name='Red', color='#f00')
        assert p.tokens == []
        assert p.color == '#f00'

    def test_add_token_twice(self):
        p = Player(id='p1', name='Red')
        t = p.new_token()
        with pytest.raises(EngineInvariantError):
            p.add_token(t)

    def test_add_foreign_token(self):
        p1, p2 = _two_players()
        foreign = Token(id='x', owner=p2)
        with pytest.raises(EngineInvariantError):
            p1.add_token(foreign)

    def test_get_token_by_id(self):
        p = Player(id='p1', name='Red')
        t = p.new_token()
        assert p.get_token_by_id('p1_t1') is t
        assert p.get_token_by_id('p1_t99') is None

    def test_board_elimination(self):
        board = build_board(2, 2)
        p = Player(id='p1', name='Red')
        t = p.new_token()
        assert p.is_eliminated_by_board_state()
        t.place(board.tile_at(0, 0))
        assert not p.is_eliminated_by_board_state()

    def test_no_tokens_is_stalemate(self):
        p = Player(id='p1', name='Red')
        assert p.is_stalemated()

    def test_reserve_only_is_not_stalemate(self):
        p = Player(id='p1', name='Red')
        p.new_token()
        p.new_token()
        assert p.is_eliminated_by_board_state()
        assert not p.is_stalemated()

    def test_surrounded_token_is_stalemate(self):
        board = build_board(4, 4)
        p1, p2 = _two_players()
        p2.new_token(health=1).place(board.tile_at(0, 0))
        for x, y in [(1, 0), (0, 1), (1, 1)]:
            p1.new_token(health=1).place(board.tile_at(x, y))
        assert p2.is_stalemated()
        assert not p1.is_stalemated()

    def test_surrounded_token_with_reserve_is_still_stalemate(self):
        board = build_board(4, 4)
        p1, p2 = _two_players()
        p2.new_token(health=2).place(board.tile_at(0, 0))
        p2.new_token()
        for x, y in [(1, 0), (0, 1), (1, 1)]:
            p1.new_token(health=3).place(board.tile_at(x, y))
        assert p2.is_stalemated()

    def test_apply_flux(self):
        board = build_board(2, 2)
        p = Player(id='p1', name='Red')
        a = p.new_token(health=1)
        a.place(board.tile_at(0, 0))
        b = p.new_token(health=5)
        b.place(board.tile_at(1, 1))
        reserve = p.new_token(health=1)
        p.apply_flux()
        assert (a.health, b.health, reserve.health) == (2, 1, 1)

    def test_apply_flux_custom_max(self):
        board = build_board(2, 2)
        p = Player(id='p1', name='Red')
        a = p.new_token(health=3)
        a.place(board.tile_at(0, 0))
        p.apply_flux(max_health=3)
        assert a.health == 1

    def test_remove_all_tokens(self):
        board = build_board(2, 2)
        p = Player(id='p1', name='Red')
        a = p.new_token()
        a.place(board.tile_at(0, 0))
        p.new_token()
        removed = p.remove_all_tokens()
        assert len(removed) == 2
        assert p.tokens == []
        assert board.tile_at(0, 0).is_empty
