"""
Core models, validators, rules and errors.
"""
