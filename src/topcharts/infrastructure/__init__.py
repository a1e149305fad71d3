"""Infrastructure layer: persistence, providers, integrations and observability."""
