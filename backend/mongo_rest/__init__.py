"""
mongo-rest - a generic REST interface over a MongoDB-compatible store.
"""

__version__ = "0.1.0"
