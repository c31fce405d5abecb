"""Core domain package for octobell.

Core contains diffing, formatting and batch processing logic without any
GitHub, Telegram or storage-specific code, keeping the business logic portable.
"""
