"""Core - settings, domain, application contracts and infrastructure."""
