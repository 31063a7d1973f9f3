"""
Query-string options for collection queries.
"""
from typing import Any, Literal, Mapping, Optional

from bson import json_util
from bson.errors import BSONError
from pydantic import BaseModel, Field, ValidationError

from mongo_rest.core.errors import InvalidRequestError

OutputType = Literal["json", "csv"]


def _load_json(name: str, raw: str) -> Any:
    try:
        return json_util.loads(raw)
    except (ValueError, BSONError) as e:
        raise InvalidRequestError(f"Parameter '{name}' is not valid JSON: {e}") from e


class QueryOptions(BaseModel):
    """Filter, projection, ordering and paging for a collection query."""
    filter: dict[str, Any] = Field(default_factory=dict)
    projection: Optional[dict[str, Any]] = None
    sort: list[tuple[str, int]] = Field(default_factory=list)
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0, description="0 means no limit")
    output: Optional[OutputType] = None

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "QueryOptions":
        """
        Parse ``query``, ``fields``, ``sort``, ``skip``, ``limit`` and ``output``.

        ``query`` and ``sort`` are MongoDB extended JSON objects; ``fields`` is
        either a JSON projection or a comma-separated list of field names.

        Raises:
            InvalidRequestError: If any option is malformed
        """
        values: dict[str, Any] = {}

        if params.get("query"):
            query = _load_json("query", params["query"])
            if not isinstance(query, dict):
                raise InvalidRequestError("Parameter 'query' must be a JSON object")
            values["filter"] = query

        fields = params.get("fields")
        if fields:
            if fields.lstrip().startswith("{"):
                projection = _load_json("fields", fields)
            else:
                projection = {name.strip(): 1 for name in fields.split(",") if name.strip()}
            values["projection"] = projection

        if params.get("sort"):
            sort = _load_json("sort", params["sort"])
            if not isinstance(sort, dict):
                raise InvalidRequestError("Parameter 'sort' must be a JSON object")
            values["sort"] = list(sort.items())

        for name in ("skip", "limit", "output"):
            if params.get(name):
                values[name] = params[name]

        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid query options: {e.errors()[0]['msg']}") from e
