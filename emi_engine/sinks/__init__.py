"""Output sinks for exporting invoices and notifications."""

from emi_engine.sinks.json_file import JsonFileSink

__all__ = ["JsonFileSink"]
