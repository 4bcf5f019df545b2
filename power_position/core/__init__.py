"""Configuration, logging and shared domain types."""
