"""
Use cases for the learning API.

Each service module orchestrates the repository and the pure domain helpers
to implement business rules (level progression, section capacity, cascading
exercise cleanup). Routers call these services instead of touching the
database session directly.
"""
