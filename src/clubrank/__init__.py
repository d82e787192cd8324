"""
Club Ranking - Elo ladder for a local club.

Records two-player match results, moves player ratings with a zero-sum
Elo swing, and pushes ranking and news updates to live clients.
"""

__version__ = "0.1.0"
