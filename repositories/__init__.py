"""
repositories/ - Data Access Layer
==================================
A single generic DataAccessLayer performs CRUD on any registered table.
It builds the SQL, binds values positionally and returns raw rows or
domain model objects.
"""
