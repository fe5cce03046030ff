"""Service staffing and content assembly engine for recurring worship services.

Modules:
- config: load and validate engine configuration (YAML)
- errors: named failure kinds and the speculative GuardResult
- timeutils: naive-UTC clock helpers
- domain: SQLAlchemy models, records, repositories, database setup
- services: ordering, composition guard, slot status, rotation selection
- engine: transaction-owning components and the ServicePlanner facade
- io: CSV import/export
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "timeutils",
    "domain",
    "services",
    "engine",
    "io",
    "cli",
]
