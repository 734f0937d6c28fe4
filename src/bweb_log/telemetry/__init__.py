"""Telemetry domain: request log records and system events.

Structure:
    models/         Pydantic models for request log records (begin/finish,
                    name events)
    system/         Operational logging (stderr + system.jsonl), the sink of
                    the reporter error channel
"""

__all__: list[str] = []
