"""
Database Module
SQLAlchemy declarative base and session management.
"""
