"""Session services: registry, message routing and idle reaping.

This package holds the pairing logic used by the Socket.IO handlers and
the HTTP status route, keeping transport concerns out of the session
lifecycle.
"""
