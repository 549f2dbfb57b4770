"""Sui DeFi workflow tools: analysis -> simulate -> execute."""

__version__ = "0.1.0"
