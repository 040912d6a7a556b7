"""Assembles a form's ordered column schema from its bindings, options and rules."""

from sqlalchemy.orm import Session

from formbuilder.core.exceptions import FormNotFound
from formbuilder.db.enums import OPTION_DATA_TYPES, DataType, ValidationKind
from formbuilder.db.models import DynamicColumn, Form, FormColumnBinding
from formbuilder.schemas.forms import ColumnDescriptor
from formbuilder.services import form_service, option_service, validation_service


def assemble_schema(
    db: Session, form_id: int, form_no: int | None = None
) -> list[ColumnDescriptor]:
    """
    Build the column schema for a form, ordered by (form_no, sequence_no).

    Only an active, unexpired form with active bindings of active columns
    contributes. Returns an empty list when nothing matches; use
    ``form_service.form_exists`` to tell "no columns yet" from "no such form".
    """
    query = (
        db.query(FormColumnBinding, DynamicColumn)
        .join(DynamicColumn, DynamicColumn.id == FormColumnBinding.column_id)
        .join(Form, Form.id == FormColumnBinding.form_id)
        .filter(
            FormColumnBinding.form_id == form_id,
            FormColumnBinding.is_active.is_(True),
            DynamicColumn.is_active.is_(True),
            *form_service.open_form_clause(),
        )
    )
    if form_no is not None:
        query = query.filter(FormColumnBinding.form_no == form_no)

    rows = query.order_by(
        FormColumnBinding.form_no,
        FormColumnBinding.sequence_no,
        FormColumnBinding.id,
    ).all()
    if not rows:
        return []

    column_ids = [column.id for _, column in rows]
    options = option_service.option_values_by_column(db, form_id, column_ids)
    rules = validation_service.rule_names_by_column(db, form_id)

    schema: list[ColumnDescriptor] = []
    for binding, column in rows:
        data_type = DataType.normalize(column.data_type)
        validations = rules.get(column.id, [])
        option_values = (
            options.get((column.id, data_type), []) if data_type in OPTION_DATA_TYPES else []
        )
        schema.append(
            ColumnDescriptor(
                binding_id=binding.id,
                col_id=column.id,
                column_name=column.name,
                data_type=data_type,
                sequence_no=binding.sequence_no,
                form_no=binding.form_no,
                read_only=binding.is_read_only,
                required=ValidationKind.REQUIRED.value in validations,
                validations=list(validations),
                option_values=list(option_values),
                banner_image=binding.banner_image,
            )
        )
    return schema


def get_public_form_schema(db: Session, form_id: int, form_no: int | None = None) -> dict:
    """Form metadata plus its assembled schema, for rendering to submitters."""
    form = form_service.get_open_form(db, form_id)
    if not form:
        raise FormNotFound()
    return {
        "form_id": form.id,
        "form_name": form.name,
        "fee": form.fee,
        "banner_image": form.banner_image,
        "start_date": form_service.as_utc(form.created_at),
        "end_date": form_service.as_utc(form.end_date),
        "columns": assemble_schema(db, form_id, form_no),
    }
