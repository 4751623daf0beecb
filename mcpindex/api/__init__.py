"""mcpindex HTTP API layer.

Usage
-----
Create and run the application::

    from mcpindex.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # catalog, plus index routes with a store

"""

from mcpindex.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
