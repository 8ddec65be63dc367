"""
Core models, schema handling, validation and errors.
"""
