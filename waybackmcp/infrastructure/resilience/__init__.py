"""API Resilience Implementations.

Contains the sliding-window rate limiter and the timeout-bounded fetch that
normalizes transport and HTTP failures into typed errors.
Bounded Context: API Resilience
"""
