"""Session engine, progress analytics and their data models."""
