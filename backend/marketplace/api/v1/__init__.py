"""
API v1 Module
Contains all version 1 API endpoints.
"""
