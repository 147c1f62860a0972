"""Timecard - time tracking backed by a Salesforce datastore."""

__version__ = "0.4.0"
