import os

# Default to throwaway SQLite tenant databases for tests
os.environ.setdefault(
    "POSTGRES_TENANT_DSN_TEMPLATE", "sqlite+aiosqlite:///./test_tenant_{tenant_id}.db"
)
