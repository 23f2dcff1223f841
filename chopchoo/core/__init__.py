"""Core helpers: configuration, constants, exceptions, cart math."""
