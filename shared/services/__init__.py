"""
Shared services
"""
