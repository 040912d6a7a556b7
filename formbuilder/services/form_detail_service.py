"""Form details: bindings that place columns into forms and sub-forms."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from formbuilder.core.exceptions import BindingNotFound, DuplicateColumn, FormNotFound
from formbuilder.db.models import DynamicColumn, Form, FormColumnBinding, SubmissionValue
from formbuilder.services import column_service, form_service

logger = logging.getLogger(__name__)


def _ensure_unique_in_scope(
    db: Session,
    form_id: int,
    form_no: int | None,
    column_id: int,
    column_name: str,
    exclude_binding_id: int | None = None,
) -> None:
    """
    Reject a second active binding of the same column, or of another column with
    the same (case-insensitive) name, inside one (form, form_no) scope.

    ``form_no=None`` checks across every sub-form of the form.
    """
    query = (
        db.query(FormColumnBinding.id)
        .join(DynamicColumn, DynamicColumn.id == FormColumnBinding.column_id)
        .filter(
            FormColumnBinding.form_id == form_id,
            FormColumnBinding.is_active.is_(True),
            (FormColumnBinding.column_id == column_id)
            | (func.lower(DynamicColumn.name) == column_name.strip().lower()),
        )
    )
    if form_no is not None:
        query = query.filter(FormColumnBinding.form_no == form_no)
    if exclude_binding_id is not None:
        query = query.filter(FormColumnBinding.id != exclude_binding_id)
    if query.first():
        raise DuplicateColumn()


def _lock_form(db: Session, form_id: int) -> None:
    """Hold the form row lock so concurrent binding changes on one form serialize."""
    db.query(Form.id).filter(Form.id == form_id).with_for_update().one()


def _commit_binding(db: Session, binding: FormColumnBinding) -> FormColumnBinding:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateColumn() from exc
    db.refresh(binding)
    return binding


def next_form_no(db: Session, form_id: int) -> int:
    current = (
        db.query(func.max(FormColumnBinding.form_no))
        .filter(FormColumnBinding.form_id == form_id)
        .scalar()
    )
    return (current or 0) + 1


def get_binding(db: Session, owner_id: int, binding_id: int) -> FormColumnBinding | None:
    return (
        db.query(FormColumnBinding)
        .options(joinedload(FormColumnBinding.form), joinedload(FormColumnBinding.column))
        .join(Form, Form.id == FormColumnBinding.form_id)
        .filter(
            FormColumnBinding.id == binding_id,
            FormColumnBinding.is_active.is_(True),
            Form.owner_id == owner_id,
        )
        .first()
    )


def require_binding(db: Session, owner_id: int, binding_id: int) -> FormColumnBinding:
    binding = get_binding(db, owner_id, binding_id)
    if not binding:
        raise BindingNotFound()
    return binding


def add_binding(
    db: Session,
    owner_id: int,
    form_id: int,
    column_id: int,
    sequence_no: int | None = None,
    form_no: int | None = None,
    is_active: bool = True,
    banner_image: str | None = None,
    is_read_only: bool = False,
) -> FormColumnBinding:
    """
    Bind a column into a form. ``form_no`` defaults to a fresh sub-form (max + 1).

    Raises:
        FormNotFound / ColumnNotFound: Unknown or foreign form/column
        DuplicateColumn: Column already bound (by id or name) in the same sub-form
    """
    form_service.require_form(db, owner_id, form_id)
    column = column_service.require_active_column(db, owner_id, column_id)
    _lock_form(db, form_id)

    target_form_no = form_no or next_form_no(db, form_id)
    if is_active:
        _ensure_unique_in_scope(db, form_id, target_form_no, column.id, column.name)

    binding = FormColumnBinding(
        form_id=form_id,
        column_id=column.id,
        sequence_no=sequence_no or 1,
        form_no=target_form_no,
        owner_id=owner_id,
        is_active=is_active,
        banner_image=banner_image,
        is_read_only=is_read_only,
    )
    db.add(binding)
    return _commit_binding(db, binding)


def update_binding(
    db: Session,
    owner_id: int,
    column_id: int,
    form_id: int,
    column_name: str,
    data_type: str,
    sequence_no: int | None = None,
    is_active: bool = True,
    banner_image: str | None = None,
    is_read_only: bool = False,
) -> FormColumnBinding:
    """Update a column definition and its binding in one form together."""
    form_service.require_form(db, owner_id, form_id)
    column = column_service.get_column(db, owner_id, column_id)
    if not column:
        raise BindingNotFound("No matching form detail found to update")
    _lock_form(db, form_id)

    binding = (
        db.query(FormColumnBinding)
        .filter(
            FormColumnBinding.form_id == form_id,
            FormColumnBinding.column_id == column_id,
        )
        .order_by(FormColumnBinding.is_active.desc(), FormColumnBinding.id)
        .first()
    )
    if not binding:
        raise BindingNotFound("No matching form detail found to update")

    if is_active:
        _ensure_unique_in_scope(
            db, form_id, binding.form_no, column_id, column_name, exclude_binding_id=binding.id
        )

    column.name = column_name.strip()
    column.data_type = column_service.normalize_data_type(data_type)
    column.is_active = is_active
    binding.sequence_no = sequence_no or 1
    binding.is_active = is_active
    binding.banner_image = banner_image
    binding.is_read_only = is_read_only
    return _commit_binding(db, binding)


def update_sequence(db: Session, binding: FormColumnBinding, sequence_no: int) -> FormColumnBinding:
    binding.sequence_no = sequence_no
    db.commit()
    db.refresh(binding)
    return binding


def set_read_only(db: Session, binding: FormColumnBinding, is_read_only: bool) -> FormColumnBinding:
    binding.is_read_only = is_read_only
    db.commit()
    db.refresh(binding)
    return binding


def soft_delete_binding(db: Session, binding: FormColumnBinding) -> FormColumnBinding:
    binding.is_active = False
    db.commit()
    db.refresh(binding)
    return binding


def binding_in_use(db: Session, binding: FormColumnBinding) -> bool:
    """Whether any submission stored a value for this column in this form."""
    hit = (
        db.query(SubmissionValue.id)
        .filter(
            SubmissionValue.form_id == binding.form_id,
            SubmissionValue.column_id == binding.column_id,
        )
        .first()
    )
    return hit is not None


def to_read(binding: FormColumnBinding) -> dict:
    return {
        "id": binding.id,
        "form_id": binding.form_id,
        "form_name": binding.form.name,
        "column_id": binding.column_id,
        "column_name": binding.column.name,
        "data_type": binding.column.data_type,
        "sequence_no": binding.sequence_no,
        "form_no": binding.form_no,
        "is_active": binding.is_active,
        "is_read_only": binding.is_read_only,
        "banner_image": binding.banner_image,
    }


def list_owner_form_layouts(
    db: Session, owner_id: int, form_id: int | None = None
) -> list[dict]:
    """Owner's active forms with their active bindings in (form_no, sequence_no) order."""
    query = (
        db.query(FormColumnBinding)
        .options(joinedload(FormColumnBinding.form), joinedload(FormColumnBinding.column))
        .join(Form, Form.id == FormColumnBinding.form_id)
        .join(DynamicColumn, DynamicColumn.id == FormColumnBinding.column_id)
        .filter(
            Form.owner_id == owner_id,
            Form.is_active.is_(True),
            FormColumnBinding.is_active.is_(True),
            DynamicColumn.is_active.is_(True),
        )
    )
    if form_id is not None:
        if not form_service.get_form(db, owner_id, form_id):
            raise FormNotFound()
        query = query.filter(FormColumnBinding.form_id == form_id)

    bindings = query.order_by(
        Form.id,
        FormColumnBinding.form_no,
        FormColumnBinding.sequence_no,
        FormColumnBinding.id,
    ).all()

    layouts: dict[int, dict] = {}
    for binding in bindings:
        layout = layouts.setdefault(
            binding.form_id,
            {"form_id": binding.form_id, "form_name": binding.form.name, "columns": []},
        )
        layout["columns"].append(to_read(binding))
    return list(layouts.values())
