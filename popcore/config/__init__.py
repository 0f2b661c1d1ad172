"""Configuration package for the arcade simulation.

Constants are grouped by concern: play-field geometry in ``display``,
score-driven scaling in ``difficulty`` and tick/mode timing in ``session``.
"""
