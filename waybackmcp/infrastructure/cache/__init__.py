"""Response Cache Implementations.

Provides concrete implementations of the ResponseCache interface:
an in-memory cache with TTL and size bound, and a disk cache backed by diskcache.
Bounded Context: Cache Management
"""
