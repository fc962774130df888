"""
security/ - Sensitive Data Handling
===================================
Encryption helpers for fields that must not be stored in plaintext.
"""
