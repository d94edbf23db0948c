"""Credential and session-token subsystem for the Chirpy API."""

__version__ = "0.1.0"
