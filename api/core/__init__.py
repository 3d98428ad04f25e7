"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks that several features use (DB wiring,
settings, list-query parsing, the Klout and Twitter adapters). Feature-specific
SQL and business logic live in the matching feature package (e.g. `handles/`).
"""
