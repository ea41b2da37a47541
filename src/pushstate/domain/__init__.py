"""Domain layer: entity model, validation, and the reconciliation engine."""
