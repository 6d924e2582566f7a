"""Habit Quest - gamified habit tracking progress engine"""

__version__ = "0.1.0"
