"""
YouTube Channel Tracker - daily channel statistics with history, deltas and backups
"""

__version__ = "1.0.0"
