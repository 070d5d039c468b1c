"""
Data access functions for the models. These are thin wrappers
around the tortoise queries that the managers build on.
"""
