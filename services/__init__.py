"""
services/ - Business Logic Layer
================================
Use-cases that sit between the HTTP handlers and the data access layer.
"""
