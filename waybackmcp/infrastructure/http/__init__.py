"""Configurable HTTP fetch.

Selects between direct and cached request execution per call and applies
process-wide default headers.
"""
