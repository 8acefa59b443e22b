"""
D&D Beyond middleware - cached, rate-limited, retrying access to the
D&D Beyond character service.
"""

__version__ = "0.1.0"
