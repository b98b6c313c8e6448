"""Vaultbridge: guarded tool-call gateway for the vault CLI and organization API."""

__version__ = "0.1.0"
