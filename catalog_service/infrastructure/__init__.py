"""Infrastructure module.

Configuration, database access, logging and event delivery.
"""
