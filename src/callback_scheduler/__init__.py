"""
callback_scheduler: fire an HTTP callback once, at a requested point in time.

Tasks live in memory only; a restart drops everything still pending.
"""

__version__ = "0.1.0"
