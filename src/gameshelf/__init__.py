"""Gameshelf — accounts, collections, and reviews for board-game players.

The user-facing backend: registration and token auth, a profile, a
per-user board-game collection with free-text labels, and per-game
reviews.
"""

__version__ = "0.1.0"
