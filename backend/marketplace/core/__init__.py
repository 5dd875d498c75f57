"""
Core Module
Configuration, security helpers, constants and domain exceptions.
"""
