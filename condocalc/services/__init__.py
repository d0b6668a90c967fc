"""Billing engine, configuration and storage services."""
