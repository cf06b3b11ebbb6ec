"""
Core configuration, logging, errors and persistence plumbing
"""
