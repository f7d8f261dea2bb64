from .tenant import TenantEngines, build_dsn, create_schema

__all__ = ["TenantEngines", "build_dsn", "create_schema"]
