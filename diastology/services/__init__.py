"""Navigation engine, registry, validation and API services."""
