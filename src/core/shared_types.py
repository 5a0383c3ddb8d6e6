"""
Type definitions used across layers
"""

from enum import StrEnum


class SessionStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    ABANDONED = "abandoned"


# --- PieceColor DOES NOT contain an option for empty cells. That one lives in src/puzzle/pieces.py
# --- NOTE This is the tag written into the persisted move log, so the values must stay stable


class PieceColor(StrEnum):
    WHITE = "white"
    BLACK = "black"
