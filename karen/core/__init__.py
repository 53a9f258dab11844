"""
Core utilities - errors shared across the package.
"""
