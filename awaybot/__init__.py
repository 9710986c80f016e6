"""
awaybot - an away auto-responder for a personal messaging account.
"""

__version__ = "0.1.0"
__logo__ = "💤"
