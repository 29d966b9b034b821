"""
Utility modules shared by the router and the client.
"""
from .query import flatten_query, serialize_query, parse_query

__all__ = ['flatten_query', 'serialize_query', 'parse_query']
