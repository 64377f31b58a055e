"""
Persistence adapters.

Services depend on SQLRepository rather than building SQL statements
themselves; transactional use cases pass their session through.
"""
