"""
Noughts - Multiplayer Tic-Tac-Toe Session Engine

A server-authoritative engine for two-player tic-tac-toe over WebSockets.
The server provides:
- Room lifecycle (create, join, leave, destroy when empty)
- Seat and mark assignment (first seat is host and plays X)
- Turn order and move validation
- Win/draw detection
- Broadcast of every state change to both players
"""

__version__ = "0.1.0"
