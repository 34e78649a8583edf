"""
Auth service: login, registration and profile lookup against an identity provider.
"""
