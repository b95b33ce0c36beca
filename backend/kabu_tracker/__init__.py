"""
Kabu Tracker
Japanese equities portfolio tracker
"""

__version__ = "1.0.0"
