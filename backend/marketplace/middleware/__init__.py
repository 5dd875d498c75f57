"""
Middleware Module
Contains FastAPI middleware for cross-cutting concerns.
"""
