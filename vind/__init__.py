"""
vind - web-accessible administration layer for relational databases
"""

__version__ = "0.1.0"
