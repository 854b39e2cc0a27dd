"""Bootcamp Tracker — League of Legends bootcamp roster, live-game and stream tracking.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
