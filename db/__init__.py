"""
db/ - Database Layer
====================
Handles PostgreSQL connections, schema initialization, SQL generation and
the prepare/execute boundary. This layer is the lowest in the architecture
and has no dependencies on other layers.
"""
