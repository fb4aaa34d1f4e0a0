"""
Shared pydantic models
"""
