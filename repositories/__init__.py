"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for a specific domain entity.
Repositories run parameterized statements through the shared pool and
shape joined rows into domain model objects.
"""
