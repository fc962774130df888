"""
models/ - Domain Models
=======================
Dataclasses for the rows this application reads and writes,
plus the functions that shape joined rows into nested views.
"""
