"""Reusable typed columns owned by an administrator."""

from sqlalchemy.orm import Session

from formbuilder.core.exceptions import ColumnNotFound, ValidationError
from formbuilder.db.enums import DataType
from formbuilder.db.models import DynamicColumn


def normalize_data_type(data_type: str) -> str:
    cleaned = (data_type or "").strip().lower()
    if not DataType.has_value(cleaned):
        raise ValidationError(f"Unsupported data type: {data_type}")
    return cleaned


def list_columns(db: Session, owner_id: int) -> list[DynamicColumn]:
    return (
        db.query(DynamicColumn)
        .filter(DynamicColumn.owner_id == owner_id, DynamicColumn.is_active.is_(True))
        .order_by(DynamicColumn.id)
        .all()
    )


def get_column(db: Session, owner_id: int, column_id: int) -> DynamicColumn | None:
    return (
        db.query(DynamicColumn)
        .filter(DynamicColumn.id == column_id, DynamicColumn.owner_id == owner_id)
        .first()
    )


def require_active_column(db: Session, owner_id: int, column_id: int) -> DynamicColumn:
    column = get_column(db, owner_id, column_id)
    if not column or not column.is_active:
        raise ColumnNotFound()
    return column


def create_columns(
    db: Session, owner_id: int, columns: list[tuple[str, str]]
) -> list[DynamicColumn]:
    """Insert a batch of (name, data_type) columns; one bad entry rejects all."""
    rows = []
    for name, data_type in columns:
        cleaned_name = (name or "").strip()
        if not cleaned_name:
            raise ValidationError("Column name and data type are required")
        rows.append(
            DynamicColumn(
                name=cleaned_name,
                data_type=normalize_data_type(data_type),
                owner_id=owner_id,
                is_active=True,
            )
        )
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


def update_column(
    db: Session,
    column: DynamicColumn,
    name: str,
    data_type: str,
    is_active: bool = True,
) -> DynamicColumn:
    cleaned_name = (name or "").strip()
    if not cleaned_name:
        raise ValidationError("Column name and data type are required")
    column.name = cleaned_name
    column.data_type = normalize_data_type(data_type)
    column.is_active = is_active
    db.commit()
    db.refresh(column)
    return column


def soft_delete_column(db: Session, column: DynamicColumn) -> DynamicColumn:
    column.is_active = False
    db.commit()
    db.refresh(column)
    return column
