"""
Per-database/collection access control.

The configured allow-list is normalized once, at settings load time, into an
``AccessControl`` instance. Accepted shapes of the raw option:

- ``None`` (or an empty mapping): everything is allowed
- ``{"db": ["col", ...]}``: only the listed databases are reachable; an empty
  list allows every collection of that database
- ``["col", ...]``: collection allow-list that applies to any database
"""
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ANY_DATABASE = "*"


class AccessControl(BaseModel):
    """Canonical allow-list: database name -> allowed collections."""

    model_config = ConfigDict(frozen=True)

    rules: dict[str, frozenset[str]] = Field(default_factory=dict)

    @classmethod
    def parse(cls, raw: Any) -> "AccessControl":
        """
        Build the canonical form from the raw configuration value.

        Raises:
            ValueError: If the value is neither a mapping nor a list
        """
        if raw is None:
            return cls()
        if isinstance(raw, AccessControl):
            return raw
        if isinstance(raw, (list, tuple, set, frozenset)):
            return cls(rules={ANY_DATABASE: frozenset(str(name) for name in raw)})
        if isinstance(raw, Mapping):
            rules = {}
            for database, collections in raw.items():
                rules[str(database)] = frozenset(str(name) for name in (collections or []))
            return cls(rules=rules)
        raise ValueError(
            "dbAccessControl must be a mapping of database names to collection "
            "lists, or a list of collection names"
        )

    @property
    def restricted(self) -> bool:
        return bool(self.rules)

    def allowed_collections(self, database: str) -> Optional[frozenset[str]]:
        """Collections allowed in a database, or None if it is denied."""
        if database in self.rules:
            return self.rules[database]
        return self.rules.get(ANY_DATABASE)

    def is_allowed(self, database: Optional[str], collection: Optional[str] = None) -> bool:
        """
        Decide whether a database (and optionally a collection) is reachable.

        Args:
            database: Target database name, None for store-wide requests
            collection: Target collection name, if any

        Returns:
            True if the request may proceed
        """
        if not self.restricted or database is None:
            return True

        allowed = self.allowed_collections(database)
        if allowed is None:
            return False
        if collection is None or not allowed:
            return True
        return collection in allowed
