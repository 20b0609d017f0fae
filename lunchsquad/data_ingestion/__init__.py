"""
Restaurant catalogue seed package.

Responsibilities:
- Read the seed restaurant CSV.
- Normalize it into the canonical Restaurant schema.
- Upsert the catalogue into the configured store.
"""
