"""
Game Data Models

Contains all game-related data structures and enums, plus their wire
(JSON) encoding. Decoding is strict: unknown enum values or malformed shapes
raise ValueError instead of being guessed at.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class PieceType(Enum):
    """Piece kinds that can occupy a cell."""
    ROCK = "ROCK"
    PAPER = "PAPER"
    SCISSORS = "SCISSORS"
    SPECIAL = "SPECIAL"
    EMPTY = "EMPTY"

    @property
    def is_combat(self) -> bool:
        return self in (PieceType.ROCK, PieceType.PAPER, PieceType.SCISSORS)


# Pieces that can be held in an inventory (in wire order)
INVENTORY_PIECES = (PieceType.ROCK, PieceType.PAPER, PieceType.SCISSORS, PieceType.SPECIAL)


class Player(Enum):
    """Player identifiers. NONE marks an unowned cell."""
    PLAYER1 = "PLAYER1"
    PLAYER2 = "PLAYER2"
    NONE = "NONE"

    @classmethod
    def from_number(cls, number: int) -> "Player":
        if number == 1:
            return cls.PLAYER1
        if number == 2:
            return cls.PLAYER2
        raise ValueError(f"Invalid player number: {number!r}")

    @property
    def opponent(self) -> "Player":
        if self is Player.PLAYER1:
            return Player.PLAYER2
        if self is Player.PLAYER2:
            return Player.PLAYER1
        return Player.NONE


class GamePhase(Enum):
    """Strict progression READY -> SELECTING_CELL -> GAME_OVER (-> READY on rematch)."""
    READY = "READY"
    SELECTING_CELL = "SELECTING_CELL"
    GAME_OVER = "GAME_OVER"


class GameResult(Enum):
    ONGOING = "ONGOING"
    PLAYER1_WIN = "PLAYER1_WIN"
    PLAYER2_WIN = "PLAYER2_WIN"
    DRAW = "DRAW"

    @classmethod
    def win_for(cls, player: Player) -> "GameResult":
        if player is Player.PLAYER1:
            return cls.PLAYER1_WIN
        if player is Player.PLAYER2:
            return cls.PLAYER2_WIN
        raise ValueError(f"No win result for {player!r}")


class EndReason(Enum):
    """Why a game reached GAME_OVER."""
    ALIGNMENT = "ALIGNMENT"
    DRAW = "DRAW"
    OPPONENT_LEFT = "OPPONENT_LEFT"


Inventory = Dict[PieceType, int]


@dataclass(frozen=True)
class Position:
    row: int
    col: int

    def to_dict(self) -> Dict:
        return {"row": self.row, "col": self.col}

    @classmethod
    def from_dict(cls, data: Dict) -> "Position":
        if not isinstance(data, dict):
            raise ValueError("Position must be an object")
        row, col = data.get("row"), data.get("col")
        for value in (row, col):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError("Position row/col must be integers")
        return cls(row=row, col=col)


@dataclass
class Cell:
    """A single board square. owner is NONE iff piece is EMPTY."""
    piece: PieceType = PieceType.EMPTY
    owner: Player = Player.NONE
    has_been_used: bool = False

    @property
    def is_empty(self) -> bool:
        return self.piece is PieceType.EMPTY

    def copy(self) -> "Cell":
        return Cell(self.piece, self.owner, self.has_been_used)

    def to_dict(self) -> Dict:
        return {
            "piece": self.piece.value,
            "owner": self.owner.value,
            "hasBeenUsed": self.has_been_used,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Cell":
        if not isinstance(data, dict):
            raise ValueError("Cell must be an object")
        cell = cls(
            piece=PieceType(data.get("piece")),
            owner=Player(data.get("owner")),
            has_been_used=bool(data.get("hasBeenUsed", False)),
        )
        if cell.is_empty != (cell.owner is Player.NONE):
            raise ValueError("Cell owner must be NONE exactly when the cell is EMPTY")
        return cell


Board = List[List[Cell]]


def copy_board(board: Board) -> Board:
    return [[cell.copy() for cell in row] for row in board]


def inventory_to_dict(inventory: Inventory) -> Dict[str, int]:
    return {piece.value: inventory.get(piece, 0) for piece in INVENTORY_PIECES}


def inventory_from_dict(data: Dict) -> Inventory:
    if not isinstance(data, dict):
        raise ValueError("Inventory must be an object")
    inventory = {}
    for piece in INVENTORY_PIECES:
        count = data.get(piece.value, 0)
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"Invalid inventory count for {piece.value}: {count!r}")
        inventory[piece] = count
    return inventory


@dataclass
class MoveRecord:
    """Delta describing the last applied move."""
    player: Player
    piece: PieceType
    position: Position
    captured: bool
    locked: bool
    turn_skipped: bool = False

    def to_dict(self) -> Dict:
        return {
            "player": self.player.value,
            "piece": self.piece.value,
            "position": self.position.to_dict(),
            "captured": self.captured,
            "locked": self.locked,
            "turnSkipped": self.turn_skipped,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MoveRecord":
        if not isinstance(data, dict):
            raise ValueError("Move record must be an object")
        return cls(
            player=Player(data.get("player")),
            piece=PieceType(data.get("piece")),
            position=Position.from_dict(data.get("position")),
            captured=bool(data.get("captured")),
            locked=bool(data.get("locked")),
            turn_skipped=bool(data.get("turnSkipped", False)),
        )


@dataclass
class GameState:
    """Server-authoritative game state, broadcast verbatim to clients."""
    board: Board
    player1_inventory: Inventory
    player2_inventory: Inventory
    current_player: Player = Player.PLAYER1
    game_phase: GamePhase = GamePhase.READY
    game_result: GameResult = GameResult.ONGOING
    last_move: Optional[MoveRecord] = None
    winning_line: Optional[List[Position]] = None
    end_reason: Optional[EndReason] = None

    def inventory_for(self, player: Player) -> Inventory:
        if player is Player.PLAYER1:
            return self.player1_inventory
        if player is Player.PLAYER2:
            return self.player2_inventory
        raise ValueError(f"No inventory for {player!r}")

    def to_dict(self) -> Dict:
        return {
            "board": [[cell.to_dict() for cell in row] for row in self.board],
            "player1Inventory": inventory_to_dict(self.player1_inventory),
            "player2Inventory": inventory_to_dict(self.player2_inventory),
            "currentPlayer": self.current_player.value,
            "gamePhase": self.game_phase.value,
            "gameResult": self.game_result.value,
            "lastMove": self.last_move.to_dict() if self.last_move else None,
            "winningLine": [p.to_dict() for p in self.winning_line] if self.winning_line else None,
            "endReason": self.end_reason.value if self.end_reason else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "GameState":
        if not isinstance(data, dict):
            raise ValueError("Game state must be an object")

        rows = data.get("board")
        if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
            raise ValueError("Board must be a list of rows")

        current_player = Player(data.get("currentPlayer"))
        if current_player is Player.NONE:
            raise ValueError("currentPlayer must be PLAYER1 or PLAYER2")

        last_move = data.get("lastMove")
        winning_line = data.get("winningLine")
        end_reason = data.get("endReason")

        return cls(
            board=[[Cell.from_dict(cell) for cell in row] for row in rows],
            player1_inventory=inventory_from_dict(data.get("player1Inventory")),
            player2_inventory=inventory_from_dict(data.get("player2Inventory")),
            current_player=current_player,
            game_phase=GamePhase(data.get("gamePhase")),
            game_result=GameResult(data.get("gameResult")),
            last_move=MoveRecord.from_dict(last_move) if last_move else None,
            winning_line=[Position.from_dict(p) for p in winning_line] if winning_line else None,
            end_reason=EndReason(end_reason) if end_reason else None,
        )


@dataclass
class MoveRequest:
    """A validated inbound move payload."""
    room_id: str
    position: Position
    piece: PieceType
