"""
In-memory query analytics.

Responsibilities:
- Record one event per browse round trip.
- Summarise events for the admin analytics endpoint.
"""
