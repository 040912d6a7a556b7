"""Validation catalog and per column-in-form validation rules."""

from sqlalchemy.orm import Session, joinedload

from formbuilder.core.exceptions import ValidationError, ValidationRuleNotFound
from formbuilder.db.enums import ValidationKind
from formbuilder.db.models import DynamicColumn, Form, ValidationRule, ValidationType
from formbuilder.services import column_service, form_service


def seed_validation_types(db: Session) -> int:
    """Insert any missing catalog entries. Returns how many were added."""
    existing = {name for (name,) in db.query(ValidationType.name).all()}
    missing = [kind.value for kind in ValidationKind if kind.value not in existing]
    for name in missing:
        db.add(ValidationType(name=name))
    if missing:
        db.commit()
    return len(missing)


def list_validation_types(db: Session) -> list[ValidationType]:
    return db.query(ValidationType).order_by(ValidationType.id).all()


def _require_validation_type(db: Session, validation_type_id: int) -> ValidationType:
    validation_type = db.get(ValidationType, validation_type_id)
    if not validation_type:
        raise ValidationError("Unknown validation type")
    return validation_type


def add_validation_rule(
    db: Session,
    owner_id: int,
    validation_type_id: int,
    column_id: int,
    form_id: int,
    is_active: bool = True,
) -> ValidationRule:
    _require_validation_type(db, validation_type_id)
    column_service.require_active_column(db, owner_id, column_id)
    form_service.require_form(db, owner_id, form_id)
    rule = ValidationRule(
        validation_type_id=validation_type_id,
        column_id=column_id,
        form_id=form_id,
        is_active=is_active,
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


def list_validation_rules(db: Session, owner_id: int, form_id: int) -> list[ValidationRule]:
    """Active rules of an active form whose column is still active."""
    return (
        db.query(ValidationRule)
        .options(joinedload(ValidationRule.validation_type), joinedload(ValidationRule.column))
        .join(DynamicColumn, DynamicColumn.id == ValidationRule.column_id)
        .join(Form, Form.id == ValidationRule.form_id)
        .filter(
            ValidationRule.form_id == form_id,
            ValidationRule.is_active.is_(True),
            DynamicColumn.is_active.is_(True),
            Form.is_active.is_(True),
            Form.owner_id == owner_id,
        )
        .order_by(ValidationRule.id)
        .all()
    )


def rule_names_by_column(db: Session, form_id: int) -> dict[int, list[str]]:
    """Active validation names per column for one form."""
    rows = (
        db.query(ValidationRule.column_id, ValidationType.name)
        .join(ValidationType, ValidationType.id == ValidationRule.validation_type_id)
        .filter(ValidationRule.form_id == form_id, ValidationRule.is_active.is_(True))
        .order_by(ValidationRule.id)
        .all()
    )
    names: dict[int, list[str]] = {}
    for column_id, name in rows:
        bucket = names.setdefault(column_id, [])
        if name not in bucket:
            bucket.append(name)
    return names


def _require_rule(db: Session, owner_id: int, rule_id: int) -> ValidationRule:
    rule = (
        db.query(ValidationRule)
        .join(Form, Form.id == ValidationRule.form_id)
        .filter(ValidationRule.id == rule_id, Form.owner_id == owner_id)
        .first()
    )
    if not rule:
        raise ValidationRuleNotFound()
    return rule


def update_validation_rule(
    db: Session,
    owner_id: int,
    rule_id: int,
    validation_type_id: int,
    is_active: bool = True,
) -> ValidationRule:
    rule = _require_rule(db, owner_id, rule_id)
    _require_validation_type(db, validation_type_id)
    rule.validation_type_id = validation_type_id
    rule.is_active = is_active
    db.commit()
    db.refresh(rule)
    return rule


def soft_delete_validation_rule(db: Session, owner_id: int, rule_id: int) -> ValidationRule:
    rule = _require_rule(db, owner_id, rule_id)
    rule.is_active = False
    db.commit()
    db.refresh(rule)
    return rule


def to_read(rule: ValidationRule) -> dict:
    return {
        "id": rule.id,
        "validation_type_id": rule.validation_type_id,
        "validation_name": rule.validation_type.name,
        "column_id": rule.column_id,
        "column_name": rule.column.name,
        "data_type": rule.column.data_type,
        "form_id": rule.form_id,
        "is_active": rule.is_active,
    }
