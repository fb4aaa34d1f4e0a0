"""
SheetLens services
"""
