"""
Schema change model shared by the DDL parser and the Doris REST client.

Provides:
- SchemaChangeOperation enum (ADD / DROP column)
- SchemaChangeIntent describing one column change
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SchemaChangeOperation(str, Enum):
    """Supported light schema change operations."""
    ADD = 'ADD'
    DROP = 'DROP'


@dataclass(frozen=True)
class SchemaChangeIntent:
    """
    Represents a single-column schema change to replay on Doris.

    Attributes:
        operation: ADD or DROP
        column_name: Name of the column being added or dropped
        column_type: Doris column type (ADD only)
        default_value: Rendered default value expression (ADD only)
        comment: Column comment (ADD only)
    """
    operation: SchemaChangeOperation
    column_name: Optional[str]
    column_type: Optional[str] = None
    default_value: Optional[str] = None
    comment: Optional[str] = None

    @property
    def is_drop_column(self) -> bool:
        return self.operation == SchemaChangeOperation.DROP

    @property
    def is_valid(self) -> bool:
        """DROP needs a column name; ADD also needs a type."""
        if not self.column_name or not self.column_name.strip():
            return False
        if self.is_drop_column:
            return True
        return bool(self.column_type and self.column_type.strip())

    def to_request_params(self) -> Dict[str, Any]:
        """
        Build the light schema change capability check params:

            {"isDropColumn": true, "columnName": "column"}

        A missing column name is left out, so the params fail the
        two-entry check downstream.
        """
        params = {
            'isDropColumn': self.is_drop_column,
            'columnName': self.column_name,
        }
        return {k: v for k, v in params.items() if v is not None}

    def __str__(self) -> str:
        return f"SchemaChangeIntent({self.operation.value}, {self.column_name})"
