"""
Game Rule Constants Module

Defines the canonical JankenWars rule set shared by the server-side move
processor and the client-side synchronization store. All rule parameters are
centralized here so both sides of the wire agree on them.
"""

import re
from typing import Dict, Final, Pattern

# Board geometry
BOARD_SIZE: Final[int] = 6
"""
Width and height of the square board.
Type: Final[int] - Immutable to prevent accidental modification
"""

WIN_LENGTH: Final[int] = 4
"""
Number of consecutive owned cells needed to win (horizontal, vertical or diagonal).
"""

# Starting inventory per player, keyed by PieceType value
INITIAL_INVENTORY: Final[Dict[str, int]] = {
    "ROCK": 7,
    "PAPER": 7,
    "SCISSORS": 7,
    "SPECIAL": 1,
}

# Boundary validation patterns
ROOM_ID_LENGTH: Final[int] = 8
ROOM_ID_PATTERN: Final[Pattern] = re.compile(r'^[a-f0-9]{8}$', re.IGNORECASE)
USERNAME_PATTERN: Final[Pattern] = re.compile(r'^[A-Za-z0-9_]{3,20}$')


def validate_rule_settings() -> bool:
    """
    Validates the internal consistency of the rule constants.

    Returns:
        bool: True if all checks pass

    Raises:
        ValueError: If any rule constant is inconsistent
    """
    if BOARD_SIZE < WIN_LENGTH:
        raise ValueError(f"Board size {BOARD_SIZE} is smaller than win length {WIN_LENGTH}")

    if WIN_LENGTH < 2:
        raise ValueError("Win length must be at least 2")

    expected = {"ROCK", "PAPER", "SCISSORS", "SPECIAL"}
    if set(INITIAL_INVENTORY) != expected:
        raise ValueError(f"Inventory must define exactly {sorted(expected)}")

    for piece, count in INITIAL_INVENTORY.items():
        if count < 0:
            raise ValueError(f"Initial count for {piece} cannot be negative")

    return True


def get_rule_summary() -> dict:
    """Summary of the active rule set, used by the health endpoint and logs."""
    return {
        "board_size": BOARD_SIZE,
        "win_length": WIN_LENGTH,
        "initial_inventory": dict(INITIAL_INVENTORY),
        "pieces_per_player": sum(INITIAL_INVENTORY.values()),
    }


# Module initialization: Validate configuration on import
validate_rule_settings()
