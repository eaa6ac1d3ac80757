"""
OZIFIN transaction ledger and task board API.
"""
__version__ = "1.0.0"
