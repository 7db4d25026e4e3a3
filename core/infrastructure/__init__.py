"""Infrastructure layer - resilience, context store, adapters and message bus."""
