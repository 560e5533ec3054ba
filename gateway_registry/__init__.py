"""
Gateway schema registry.

Keeps a version-controlled registry of GraphQL service SDL snapshots,
reconciles it against live services and publishes release candidates.

Structure:
- domain/: Registry models, file codec, ports and errors
- application/: SchemaRegistry orchestration, SDL probe, change detection
- infrastructure/: GitHub and in-memory hosts, remote executor, retry, gateway builder
- service/: Helpers for services that publish their SDL
"""

__version__ = "0.3.0"
