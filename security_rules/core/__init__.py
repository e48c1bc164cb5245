"""
Resource model, naming, pagination and release logic.
"""
