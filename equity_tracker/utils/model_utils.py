import dataclasses
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar, get_type_hints

# Generic type for any model class
T = TypeVar("T")


class ModelFactory:
    """Factory class to move domain models to and from JSON-safe records."""

    @staticmethod
    def create_from_record(model_class: type[T], record: Mapping[str, Any]) -> T:
        """Create a model instance from a stored record, ignoring unknown keys."""
        hints: dict[str, Any] = get_type_hints(model_class)
        processed_data: dict[str, Any] = {}

        for key, value in record.items():
            if key not in hints:
                continue
            expected = hints[key]
            if isinstance(value, str) and (key.endswith("_date") or key == "date"):
                try:
                    value = date.fromisoformat(value[:10])
                except ValueError:
                    # Not a valid date format, keep as is
                    pass
            elif isinstance(value, str) and (key.endswith("_at") or key.endswith("_datetime")):
                try:
                    value = datetime.fromisoformat(value)
                except ValueError:
                    pass
            elif isinstance(expected, type) and issubclass(expected, Enum):
                value = expected(value)
            processed_data[key] = value

        return model_class(**processed_data)

    @staticmethod
    def create_list_from_records(
        model_class: type[T], records: list[Mapping[str, Any]] | None
    ) -> list[T]:
        """Create a list of model instances from stored records"""
        return [ModelFactory.create_from_record(model_class, record) for record in records or []]

    @staticmethod
    def to_record(model: Any) -> dict[str, Any]:
        """Flatten a dataclass into a JSON-serialisable dict."""
        record: dict[str, Any] = {}
        for field in dataclasses.fields(model):
            value = getattr(model, field.name)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            record[field.name] = value
        return record
