"""Background jobs.

Queue a registry sync::

    from mcpindex.jobs import sync_registry_job

    sync_registry_job.send("postgresql+asyncpg://...", max_apps=100)

"""

from mcpindex.jobs.actor import run_sync_async, sync_registry_job

__all__ = ["run_sync_async", "sync_registry_job"]
