"""Core of a lightweight API gateway: configuration model, filter chains, built-in filters, access logging and HTTP request handling."""

__version__ = "0.1.0"