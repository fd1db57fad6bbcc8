"""
AI Content Module
Metered AI content generation for AI Content Studio

This module provides:
- Content generation (blog posts, product descriptions, ad copy, social posts)
- Token balance metering with atomic, concurrency-safe debits
- Generation history, pagination and usage statistics
- Ownership-scoped access to stored generations

Collections used:
- users: Token balance (tokens_remaining) and subscription tier
- generations: Immutable generation records
- content_meta: Init version stamp
"""

__version__ = "1.0.0"
