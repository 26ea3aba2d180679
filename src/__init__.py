"""
Compliance Deadline Service

Generates recurring compliance deadlines from templates for the people and
structures of an organization, with a bounded lookahead and recurrence
groups for lifecycle tracking.
"""

__version__ = "1.0.0"
__author__ = "Compliance Deadlines Team"
