"""
Board Rules Engine

Pure, synchronous rule functions shared by the authoritative move processor
and the client synchronization store. None of these functions raise: invalid
input degrades to False / None, which callers treat as the failure signal.
"""

import random
from typing import List, Optional, Tuple

from ..config.game_settings import BOARD_SIZE, WIN_LENGTH, INITIAL_INVENTORY
from ..models.game import (
    Board, Cell, GamePhase, GameState, Inventory, PieceType, Player, Position, copy_board, INVENTORY_PIECES
)

# Attacker piece -> the defender piece it beats
BEATS = {
    PieceType.ROCK: PieceType.SCISSORS,
    PieceType.SCISSORS: PieceType.PAPER,
    PieceType.PAPER: PieceType.ROCK,
}

# Scan directions in win-detection order: rows, columns, down-right, down-left
DIRECTIONS = ((0, 1), (1, 0), (1, 1), (1, -1))


def create_empty_board(size: int = BOARD_SIZE) -> Board:
    return [[Cell() for _ in range(size)] for _ in range(size)]


def create_initial_inventory() -> Inventory:
    return {PieceType(name): count for name, count in INITIAL_INVENTORY.items()}


def determine_attack_winner(attacker: PieceType, defender: PieceType) -> bool:
    """
    Returns True when the attacking piece beats the defending piece.

    Rock beats Scissors, Scissors beats Paper, Paper beats Rock. Identical
    pieces, SPECIAL on either side and any other combination lose for the
    attacker.
    """
    return BEATS.get(attacker) is defender


def _in_bounds(board: Board, row, col) -> bool:
    if isinstance(row, bool) or isinstance(col, bool):
        return False
    if not isinstance(row, int) or not isinstance(col, int):
        return False
    return 0 <= row < len(board) and 0 <= col < len(board[row])


def is_valid_move(board: Board, position: Position, piece: Optional[PieceType], player: Player) -> bool:
    """
    Checks whether `player` may play `piece` onto `position`.

    Rules, in order:
    - out of bounds or no piece -> invalid
    - cell locked by a previous battle -> invalid
    - empty cell -> valid
    - SPECIAL only goes on empty cells
    - own pieces and SPECIAL pieces cannot be captured
    - otherwise valid only if the piece wins the Janken battle
    """
    if position is None or not _in_bounds(board, getattr(position, "row", None), getattr(position, "col", None)):
        return False

    if not isinstance(piece, PieceType) or piece is PieceType.EMPTY:
        return False

    target = board[position.row][position.col]

    if target.has_been_used:
        return False

    if target.is_empty:
        return True

    if piece is PieceType.SPECIAL:
        return False

    if target.owner is player:
        return False

    if target.piece is PieceType.SPECIAL:
        return False

    return determine_attack_winner(piece, target.piece)


def resolve_move(board: Board, position: Position, piece: PieceType, player: Player) -> Tuple[Board, bool]:
    """
    Applies a move and returns (new_board, captured).

    The input board is never mutated. Placing on an empty cell leaves
    hasBeenUsed False; a successful capture locks the cell permanently.
    An invalid move returns an unchanged copy and captured=False.
    """
    new_board = copy_board(board)

    if not is_valid_move(board, position, piece, player):
        return new_board, False

    target = new_board[position.row][position.col]

    if target.is_empty:
        target.piece = piece
        target.owner = player
        return new_board, False

    target.piece = piece
    target.owner = player
    target.has_been_used = True
    return new_board, True


def _owned(board: Board, row: int, col: int, player: Player) -> bool:
    cell = board[row][col]
    return cell.owner is player and not cell.is_empty


def find_winning_line(board: Board, player: Player, length: int = WIN_LENGTH) -> Optional[List[Position]]:
    """
    Returns the first run of `length` consecutive cells owned by `player`.

    Scan order: horizontal runs (rows top-to-bottom, left-to-right), then
    vertical runs, then down-right diagonals, then down-left diagonals.
    """
    if player is Player.NONE or not board:
        return None

    size = len(board)
    for d_row, d_col in DIRECTIONS:
        for row in range(size):
            for col in range(size):
                end_row = row + d_row * (length - 1)
                end_col = col + d_col * (length - 1)
                if not (0 <= end_row < size and 0 <= end_col < size):
                    continue
                line = [Position(row + d_row * i, col + d_col * i) for i in range(length)]
                if all(_owned(board, p.row, p.col, player) for p in line):
                    return line
    return None


def has_pieces(inventory: Inventory) -> bool:
    return any(count > 0 for count in inventory.values())


def has_empty_cell(board: Board) -> bool:
    return any(cell.is_empty for row in board for cell in row)


def is_draw(board: Board, player1_inventory: Inventory, player2_inventory: Inventory) -> bool:
    """True when the board is full or both inventories are fully depleted."""
    if not has_empty_cell(board):
        return True
    return not has_pieces(player1_inventory) and not has_pieces(player2_inventory)


def available_normal_pieces(inventory: Inventory) -> List[PieceType]:
    return [piece for piece in INVENTORY_PIECES if piece.is_combat and inventory.get(piece, 0) > 0]


def get_random_piece(inventory: Inventory, rng: Optional[random.Random] = None) -> Optional[PieceType]:
    """Random ROCK/PAPER/SCISSORS with a positive count, or None."""
    pieces = available_normal_pieces(inventory)
    if not pieces:
        return None
    return (rng or random).choice(pieces)


def create_game_state(phase: GamePhase = GamePhase.READY) -> GameState:
    """Fresh state: empty board, full inventories, PLAYER1 to move."""
    return GameState(
        board=create_empty_board(),
        player1_inventory=create_initial_inventory(),
        player2_inventory=create_initial_inventory(),
        current_player=Player.PLAYER1,
        game_phase=phase,
    )
