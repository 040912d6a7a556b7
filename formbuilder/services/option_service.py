"""Option sets for dropdown, checkbox and radio columns, scoped to (column, form)."""

from sqlalchemy.orm import Session

from formbuilder.core.exceptions import OptionNotFound
from formbuilder.db.enums import OptionKind
from formbuilder.db.models import ColumnOption, DynamicColumn, Form
from formbuilder.services import column_service, form_service


def add_option(
    db: Session,
    owner_id: int,
    kind: OptionKind,
    column_id: int,
    form_id: int,
    name: str,
    is_active: bool = True,
) -> ColumnOption:
    """
    Add a selectable value. Column must be active and owned by the caller.

    Raises:
        ColumnNotFound / FormNotFound: Column or form missing or not owned
    """
    column_service.require_active_column(db, owner_id, column_id)
    form_service.require_form(db, owner_id, form_id)
    option = ColumnOption(
        kind=OptionKind(kind).value,
        column_id=column_id,
        form_id=form_id,
        name=name.strip(),
        owner_id=owner_id,
        is_active=is_active,
    )
    db.add(option)
    db.commit()
    db.refresh(option)
    return option


def list_options(
    db: Session,
    kind: OptionKind,
    column_id: int,
    form_id: int,
) -> list[ColumnOption]:
    return (
        db.query(ColumnOption)
        .join(DynamicColumn, DynamicColumn.id == ColumnOption.column_id)
        .filter(
            ColumnOption.kind == OptionKind(kind).value,
            ColumnOption.column_id == column_id,
            ColumnOption.form_id == form_id,
            ColumnOption.is_active.is_(True),
            DynamicColumn.is_active.is_(True),
        )
        .order_by(ColumnOption.id)
        .all()
    )


def option_values_by_column(
    db: Session, form_id: int, column_ids: list[int]
) -> dict[tuple[int, str], list[str]]:
    """Active option names within one form keyed by (column_id, kind), in insertion order."""
    if not column_ids:
        return {}
    rows = (
        db.query(ColumnOption.column_id, ColumnOption.kind, ColumnOption.name)
        .filter(
            ColumnOption.form_id == form_id,
            ColumnOption.column_id.in_(column_ids),
            ColumnOption.is_active.is_(True),
        )
        .order_by(ColumnOption.id)
        .all()
    )
    values: dict[tuple[int, str], list[str]] = {}
    for column_id, kind, name in rows:
        values.setdefault((column_id, kind), []).append(name)
    return values


def soft_delete_option(db: Session, owner_id: int, option_id: int) -> ColumnOption:
    option = (
        db.query(ColumnOption)
        .join(Form, Form.id == ColumnOption.form_id)
        .filter(ColumnOption.id == option_id, Form.owner_id == owner_id)
        .first()
    )
    if not option:
        raise OptionNotFound()
    option.is_active = False
    db.commit()
    db.refresh(option)
    return option
