"""
Result rendering as JSON or CSV.
"""
import csv
import io
import json
from typing import Any, Iterable, Optional

from bson import Decimal128, ObjectId
from fastapi.encoders import jsonable_encoder

from mongo_rest.schemas.query import OutputType

BSON_ENCODERS = {
    ObjectId: str,
    Decimal128: str,
}

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
}


def to_jsonable(value: Any) -> Any:
    """Convert store values (ObjectId, datetime, ...) into JSON-compatible ones."""
    return jsonable_encoder(value, custom_encoder=BSON_ENCODERS)


class OutputFormatter:
    """
    Render documents for the response body.

    Args:
        human_readable: Indent JSON output
        default_output: Output type used when a request does not choose one
    """

    def __init__(self, human_readable: bool = False, default_output: OutputType = "json"):
        self.human_readable = human_readable
        self.default_output = default_output

    def select(self, requested: Optional[OutputType]) -> OutputType:
        """Request override first, then the configured default."""
        return requested or self.default_output or "json"

    def media_type(self, output: OutputType) -> str:
        return MEDIA_TYPES[output]

    def render(self, result: Any, output: OutputType = "json") -> bytes:
        if output == "csv":
            return self.render_csv(result)
        return self.render_json(result)

    def render_json(self, result: Any) -> bytes:
        return json.dumps(
            to_jsonable(result),
            ensure_ascii=False,
            indent=2 if self.human_readable else None,
        ).encode("utf-8")

    def render_csv(self, documents: Iterable[dict[str, Any]]) -> bytes:
        """
        One quoted header line with every field seen, then one line per
        document in the same column order. Lines end with CRLF.
        """
        rows = [to_jsonable(document) for document in documents]

        header: list[str] = []
        seen = set()
        for row in rows:
            for key in row:
                if key not in seen:
                    seen.add(key)
                    header.append(key)

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
        if header:
            writer.writerow(header)
        for row in rows:
            writer.writerow([_csv_value(row.get(key)) for key in header])
        return buffer.getvalue().encode("utf-8")


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
