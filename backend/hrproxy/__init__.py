"""Proxy exposing HR platform User and Score records over a small REST API."""

__version__ = "0.1.0"
