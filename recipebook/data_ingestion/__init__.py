"""
Recipe data ingestion package.

Responsibilities:
- Read a raw recipe export whose column names vary between sources.
- Normalize it into the canonical recipe schema the catalog loads.
- Persist the processed dataset locally for the browse service.
"""
