"""
API Module
Versioned HTTP routers.
"""
