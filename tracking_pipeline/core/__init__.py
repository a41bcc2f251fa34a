"""
Core services for the YouTube channel tracker
"""
