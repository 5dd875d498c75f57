"""
Service Marketplace API
Backend package for the customer/provider services marketplace.
"""
