import json

from sqlalchemy import Text, TypeDecorator


class JSONText(TypeDecorator):
    """Custom type that stores dicts as JSON text in the database but handles dicts in Python."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Python value to database value."""
        if value is None:
            return None
        if isinstance(value, str):
            return value
        return json.dumps(value, default=str)

    def process_result_value(self, value, dialect):
        """Convert database value to Python value (always a dict)."""
        if not value:
            return {}
        try:
            parsed = json.loads(value)
        except (TypeError, ValueError):
            return {}
        return parsed if isinstance(parsed, dict) else {}
