"""
SheetLens API routers
"""
