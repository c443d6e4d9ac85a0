"""Adapters that connect the core to files, HTML pages and Telegram."""
