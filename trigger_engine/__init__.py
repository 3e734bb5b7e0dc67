"""Temporal correlation between food/medication exposures and symptom outcomes.

The engine is pure computation: it consumes ordered event lists from a storage
layer and returns result records, isolated from I/O for easy testing and reasoning.
"""
