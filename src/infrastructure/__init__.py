"""
Infrastructure Components

Foundational services shared by the exchange adapters:
- networking: HTTP transport and request signing
- logging: Structured logging with per-exchange loggers
- exceptions: Exchange and configuration error taxonomy
"""
