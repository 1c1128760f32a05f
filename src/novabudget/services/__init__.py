"""Service layer: reconciliation, aggregation, auth and the session cache."""
