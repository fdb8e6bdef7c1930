"""Domain Event definitions.

Represents significant occurrences around outbound archive requests
(deferrals, admissions, failures, cache fallbacks).
"""
