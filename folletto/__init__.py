"""
Folletto - Multiplayer engine for "folletto's vault"

A turn-based dice and coin game for 3-6 players sharing one board.
The package provides:
- Authoritative per-room game state
- Dice resolution and move derivation
- A turn engine with elimination, grace and termination rules
- Room/seat management and a WebSocket transport
"""

__version__ = "0.1.0"
