"""Service layer for the Compliance Deadline Service."""
