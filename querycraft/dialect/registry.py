"""Dialect registry.

``DialectFactory`` maps dialect names to :class:`~querycraft.dialect.base.Dialect`
classes so new engines can be added without editing the builders::

    from querycraft.dialect.registry import DialectFactory

    @DialectFactory.register("cockroach")
    class CockroachDialect(PostgresDialect):
        ...

The built-in ``mysql``, ``postgres`` (alias ``postgresql``) and ``sqlite``
dialects are registered by ``querycraft/__init__.py``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from querycraft.dialect.base import Dialect
from querycraft.errors import DialectError


class DialectFactory:
    """Registry mapping dialect names to :class:`Dialect` classes.

    Example::

        dialect = DialectFactory.create("mysql")
    """

    _dialects: ClassVar[dict[str, type[Dialect]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Dialect]], type[Dialect]]:
        """Decorator that registers a dialect class under ``name``.

        Args:
            name: The dialect name (e.g. ``"postgres"``).

        Returns:
            A decorator that registers and returns the dialect class.
        """

        def decorator(dialect_cls: type[Dialect]) -> type[Dialect]:
            cls._dialects[name.lower()] = dialect_cls
            return dialect_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, dialect_cls: type[Dialect]) -> None:
        """Register a dialect class without using the decorator form."""
        cls._dialects[name.lower()] = dialect_cls

    @classmethod
    def create(cls, name: str) -> Dialect:
        """Instantiate the dialect registered for ``name``.

        Args:
            name: The dialect name, case-insensitive.

        Returns:
            A fresh :class:`Dialect` instance.

        Raises:
            DialectError: If no dialect is registered for ``name``.
        """
        dialect_cls = cls._dialects.get(name.lower())
        if dialect_cls is None:
            registered = sorted(cls._dialects)
            raise DialectError(
                f"Unsupported dialect: '{name}'. Registered dialects: {registered}.",
                name=name,
            )
        return dialect_cls()

    @classmethod
    def resolve(cls, dialect: Dialect | str) -> Dialect:
        """Return ``dialect`` unchanged, or create it when given a name."""
        if isinstance(dialect, Dialect):
            return dialect
        return cls.create(dialect)

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return the sorted list of registered dialect names."""
        return sorted(cls._dialects)
