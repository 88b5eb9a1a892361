"""
TMDb client provider.

Wires a TMDb API client into an application: settings, token injection,
request listeners, cache bridge, and the FastAPI dependencies in `api/`.

App entrypoints (FastAPI routers, CLI scripts) should live outside this package and
import from `tmdb_provider` rather than the other way around.
"""
