"""Persistence: key-value store, session history and progress ledger."""
