"""
models/ - Domain Layer
======================
Plain dataclasses describing the records this service stores.
"""
