"""Prometheus exporter for SendGrid email statistics."""

__version__ = "0.1.0"
