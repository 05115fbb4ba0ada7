"""Domain layer: entities, value objects, events and ports."""
