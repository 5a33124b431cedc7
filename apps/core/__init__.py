"""
Shared building blocks: base models, auth, permissions, logging, errors.
"""
