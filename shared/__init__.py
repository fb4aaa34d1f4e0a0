"""
SheetLens shared layer: configuration, models, exceptions and reusable services.
"""
