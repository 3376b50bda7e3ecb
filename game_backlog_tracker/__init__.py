"""
Game Backlog Tracker - session lifecycle client for a Supabase-backed game backlog.
"""

__version__ = "0.1.0"
