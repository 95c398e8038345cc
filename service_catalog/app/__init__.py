"""
Catalog Service package for the Modpack Catalog API.

This package serves a read-only catalog of modpacks, their builds and the
mods in each build. It provides:

- app.main: API surface for the catalog and health.
- app.access: Per-request access context and its resolution from API keys
  and client ids.
- app.catalog: Row and wire models, the visibility policy and response
  assembly.
- app.cache: Redis client and the cache-aside store in front of PostgreSQL.
- app.persistence: PostgreSQL repository (the system of record).

Guidelines:
- The service is stateless; rely on external cache/DB.
- The cache is advisory; PostgreSQL always decides correctness.
- Pass AccessContext explicitly; never keep per-request state on the service.
"""
