"""
Parsing helpers
"""
