"""
Civic Issue Reporter backend.
"""
