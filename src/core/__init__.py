"""Core domain package for pagewatch.

Core contains identity, pagination, deduplication, batching and retry logic
without any HTTP, Telegram or file-specific code, keeping it portable.
"""
