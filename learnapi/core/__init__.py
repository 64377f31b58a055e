"""
Core utilities shared across the learning API.

This package hosts configuration, logging setup, the error catalogue and
password hashing. Routers and services depend on these primitives instead
of reading os.environ or configuring loggers themselves.
"""
