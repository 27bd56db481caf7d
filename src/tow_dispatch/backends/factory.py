"""Backend factories."""

from __future__ import annotations

from typing import Any

from .memory_backend import InMemoryBackend
from .sqlite_backend import SQLiteBackend


def create_backend(backend: str = "memory", **kwargs: Any) -> Any:
    """Create a store implementing every repository protocol.

    Args:
        backend: ``"sqlite"`` (persistent, transactional dispatch) or
            ``"memory"`` (testing).
        **kwargs: Backend-specific configuration.

    Returns:
        A map, truck, order and identity repository.

    Raises:
        ValueError: If *backend* is unrecognised.
        KeyError: If a required option is missing.
    """
    if backend == "sqlite":
        return SQLiteBackend(db_path=kwargs["db_path"])
    elif backend == "memory":
        return InMemoryBackend(store_id=kwargs.get("store_id", "memory"))
    else:
        raise ValueError(
            f"Unknown backend: {backend!r}.  Choose from: 'sqlite', 'memory'"
        )


def create_map_backend(backend: str = "kuzu", **kwargs: Any) -> Any:
    """Create a map-only repository.

    Args:
        backend: ``"kuzu"`` (graph database) or any name accepted by
            ``create_backend``.
        **kwargs: Backend-specific configuration.
    """
    if backend == "kuzu":
        from .kuzu_backend import KuzuMapBackend

        return KuzuMapBackend(db_path=kwargs["db_path"])
    return create_backend(backend, **kwargs)


__all__ = ["create_backend", "create_map_backend"]
