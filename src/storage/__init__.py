"""Relational persistence for the Compliance Deadline Service."""
