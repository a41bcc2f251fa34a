"""
Shared storage utilities
"""
