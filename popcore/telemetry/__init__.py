"""Outbound scoring reports."""

from popcore.telemetry.reporter import EventReporter
from popcore.telemetry.sinks import LoggingSink, ReportRecord, ReportSink

__all__ = ["EventReporter", "LoggingSink", "ReportRecord", "ReportSink"]
