"""Conversational trading assistant for a single EVM DEX deployment."""

__version__ = "0.1.0"
