"""
Text renderers for a Flux match.

Every renderer receives the view dict from get_match_summary(), so the board
text, the history and the JSON dump always describe the same state. This is
the only place that knows about the two kinds of piece a board can show: real
tokens and the move preview (the translucent counter a player drags around
before committing a split).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

EMPTY_CHARS = (".", ":")  # Checkered board


@dataclass
class PlacedToken:
    """A token that is actually on the board."""
    token_id: str
    player_id: str
    x: int
    y: int
    health: int
    kind: Literal["placed"] = "placed"


@dataclass
class MovePreview:
    """Where the selected token, or the part split from it, would land. Shown on empty tiles only."""
    token_id: str
    player_id: str
    x: int
    y: int
    health: int
    kind: Literal["preview"] = "preview"


Piece = Union[PlacedToken, MovePreview]


def seat_letter(player_id: str) -> str:
    """'p1' -> 'A', 'p2' -> 'B', ..."""
    try:
        return chr(ord("A") + int(player_id[1:]) - 1)
    except ValueError:
        return "?"


def placed_tokens(view: dict) -> list[PlacedToken]:
    pieces = []
    for player in view.get("players", []):
        for token in player.get("tokens", []):
            tile = token.get("tile")
            if tile is None:
                continue
            pieces.append(PlacedToken(
                token_id=token["id"],
                player_id=player["id"],
                x=tile["x"],
                y=tile["y"],
                health=token["health"],
            ))
    return pieces


def make_preview(view: dict, token_id: str, x: int, y: int, amount: int) -> Optional[MovePreview]:
    """Build a preview for token_id at (x, y), or None if that tile is taken or the token is unknown."""
    if any(p.x == x and p.y == y for p in placed_tokens(view)):
        return None
    for player in view.get("players", []):
        for token in player.get("tokens", []):
            if token["id"] == token_id:
                return MovePreview(token_id=token_id, player_id=player["id"], x=x, y=y, health=amount)
    return None


def render_piece(piece: Piece) -> str:
    """Three-character cell for a piece. Previews use lower case."""
    letter = seat_letter(piece.player_id)
    if piece.kind == "preview":
        return f"{letter.lower()}{piece.health} "
    return f"{letter}{piece.health} "


def render_history(events: list[dict], max_events: int | None = None) -> str:
    """Render recent engine events (as produced by GameEvent.to_dict())."""
    if not events:
        return ""

    if max_events is not None:
        events = events[-max_events:]

    lines = ["RECENT EVENTS:"]
    for event in events:
        etype = event.get("type", "")
        payload = event.get("payload", {})

        if etype == "token_moved":
            origin = payload.get("from")
            src = f"({origin['x']},{origin['y']})" if origin else "reserve"
            dest = payload.get("to") or {}
            lines.append(f"  {payload.get('token_id')} moved {src} -> ({dest.get('x')},{dest.get('y')})")
        elif etype == "token_created":
            tile = payload.get("tile") or {}
            lines.append(f"  {payload.get('token_id')} created at ({tile.get('x')},{tile.get('y')}) "
                         f"with health {payload.get('health')}")
        elif etype == "token_health_changed":
            lines.append(f"  {payload.get('token_id')} health {payload.get('old_health')} -> "
                         f"{payload.get('new_health')}")
        elif etype == "token_removed":
            lines.append(f"  {payload.get('token_id')} removed")
        elif etype == "player_eliminated":
            if payload.get("reason") == "stalemate":
                lines.append(f"  {payload.get('name')} CAN'T MAKE A MOVE!")
            else:
                lines.append(f"  {payload.get('name')} HAS BEEN DEFEATED!")
        elif etype == "game_won":
            lines.append(f"  {payload.get('name')} WINS!")
        elif etype == "round_completed":
            lines.append(f"  FLUX! (end of round {payload.get('round')})")
        else:
            lines.append(f"  {event}")

    return "\n".join(lines)


def render_ascii_board(view: dict, preview: Optional[MovePreview] = None,
                       history: list[dict] | None = None) -> str:
    """ASCII board: seat letter + health per token, previews in lower case."""
    parts = []

    if history:
        parts.append(render_history(history))
        parts.append("")

    current = view.get("current_player")
    parts.append(f"Round {view.get('round', 1)} | Phase: {view.get('phase', '?')} | "
                 f"To move: {seat_letter(current) if current else '-'}")
    announcement = view.get("announcement")
    if announcement:
        parts.append(f"*** {announcement.get('name')}: {announcement.get('type')} ***")

    width = view["board"]["width"]
    height = view["board"]["height"]

    cells: dict[tuple[int, int], str] = {}
    for y in range(height):
        for x in range(width):
            cells[(x, y)] = EMPTY_CHARS[(x + y) % 2] * 2 + " "

    pieces: list[Piece] = list(placed_tokens(view))
    if preview is not None:
        pieces.append(preview)
    for piece in pieces:
        cells[(piece.x, piece.y)] = render_piece(piece)

    parts.append("")
    parts.append("  x: " + "".join(f"{x:<3}" for x in range(width)))
    parts.append("y   " + "-" * (width * 3))
    for y in range(height):
        parts.append(f"{y:<3} " + "".join(cells[(x, y)] for x in range(width)))
    parts.append("")

    parts.append("Players:")
    for player in view.get("players", []):
        reserve = sum(1 for t in player.get("tokens", []) if t.get("tile") is None)
        marker = " <" if player.get("active") else ""
        parts.append(f"  {seat_letter(player['id'])} {player['name']}: "
                     f"{len(player.get('tokens', [])) - reserve} on board, {reserve} in reserve{marker}")

    return "\n".join(parts)


def render_json(view: dict, preview: Optional[MovePreview] = None,
                history: list[dict] | None = None) -> str:
    """Raw JSON representation of the view."""
    output: dict[str, Any] = dict(view)
    if preview is not None:
        output["preview"] = {
            "token_id": preview.token_id, "x": preview.x, "y": preview.y, "health": preview.health,
        }
    if history:
        output["recent_history"] = history
    return json.dumps(output, indent=2, default=str)


RENDERERS = {
    "ascii": render_ascii_board,
    "json": render_json,
}
