"""
Pydantic Schemas Module
Contains request/response schemas for API validation and serialization.
"""
