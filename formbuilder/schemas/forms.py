"""Schemas for form definitions, columns, bindings, options and validation rules."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from formbuilder.db.enums import OptionKind


# =============================================================================
# Forms
# =============================================================================

class FormCreate(BaseModel):
    form_name: str = Field(..., min_length=1, max_length=100)
    created_date: datetime | None = None
    end_date: datetime | None = None
    fee: Decimal | None = Field(None, ge=0)
    image_or_logo: str | None = Field(None, max_length=255)


class FormUpdate(FormCreate):
    pass


class FormRead(BaseModel):
    id: int
    name: str
    owner_id: int
    owner_name: str | None = None
    created_at: datetime
    end_date: datetime | None = None
    fee: Decimal | None = None
    is_active: bool
    banner_image: str | None = None

    model_config = {"from_attributes": True}


class FormCreatedResponse(BaseModel):
    message: str
    new_form_id: int


class FormNameRead(BaseModel):
    form_name: str


class ImageUploadResponse(BaseModel):
    file_path: str


class DashboardCounts(BaseModel):
    form_count: int
    column_count: int
    submission_count: int
    submitter_count: int


# =============================================================================
# Columns
# =============================================================================

class ColumnCreate(BaseModel):
    column_name: str = Field(..., min_length=1, max_length=255)
    data_type: str = Field(..., min_length=1, max_length=50)


class ColumnsCreateRequest(BaseModel):
    columns: list[ColumnCreate] = Field(..., min_length=1)


class ColumnUpdate(ColumnCreate):
    is_active: bool = True


class ColumnRead(BaseModel):
    id: int
    name: str
    data_type: str
    is_active: bool

    model_config = {"from_attributes": True}


# =============================================================================
# Form details (column bindings)
# =============================================================================

class BindingCreate(BaseModel):
    form_id: int
    column_id: int
    sequence_no: int | None = Field(None, ge=1)
    form_no: int | None = Field(None, ge=1)
    is_active: bool = True
    banner_image: str | None = Field(None, max_length=255)
    is_read_only: bool = False


class BindingCreatedResponse(BaseModel):
    message: str
    id: int
    form_no: int


class BindingUpdate(BaseModel):
    column_name: str = Field(..., min_length=1, max_length=255)
    data_type: str = Field(..., min_length=1, max_length=50)
    form_id: int
    sequence_no: int | None = Field(None, ge=1)
    is_active: bool = True
    banner_image: str | None = Field(None, max_length=255)
    is_read_only: bool = False


class SequenceUpdate(BaseModel):
    sequence_no: int = Field(..., ge=1)


class ReadOnlyUpdate(BaseModel):
    is_read_only: bool


class BindingRead(BaseModel):
    id: int
    form_id: int
    form_name: str
    column_id: int
    column_name: str
    data_type: str
    sequence_no: int
    form_no: int
    is_active: bool
    is_read_only: bool
    banner_image: str | None = None


class FormLayoutRead(BaseModel):
    form_id: int
    form_name: str
    columns: list[BindingRead]


class NextFormNoRead(BaseModel):
    next_form_no: int


class BindingUsageRead(BaseModel):
    in_use: bool


# =============================================================================
# Option sets
# =============================================================================

class OptionCreate(BaseModel):
    column_id: int
    form_id: int
    name: str = Field(..., min_length=1, max_length=255)
    is_active: bool = True


class OptionRead(BaseModel):
    id: int
    kind: OptionKind
    column_id: int
    form_id: int
    name: str
    is_active: bool

    model_config = {"from_attributes": True}


# =============================================================================
# Validation rules
# =============================================================================

class ValidationTypeRead(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ValidationRuleCreate(BaseModel):
    validation_type_id: int
    column_id: int
    form_id: int
    is_active: bool = True


class ValidationRuleUpdate(BaseModel):
    validation_type_id: int
    is_active: bool = True


class ValidationRuleRead(BaseModel):
    id: int
    validation_type_id: int
    validation_name: str
    column_id: int
    column_name: str
    data_type: str
    form_id: int
    is_active: bool


# =============================================================================
# Assembled schema
# =============================================================================

class ColumnDescriptor(BaseModel):
    """One entry of a form's assembled column schema, ordered by (form_no, sequence_no)."""

    binding_id: int
    col_id: int
    column_name: str
    data_type: str
    sequence_no: int
    form_no: int
    read_only: bool = False
    required: bool = False
    validations: list[str] = Field(default_factory=list)
    option_values: list[str] = Field(default_factory=list)
    banner_image: str | None = None


class FormSchemaRead(BaseModel):
    form_id: int
    form_name: str
    fee: Decimal | None = None
    banner_image: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    columns: list[ColumnDescriptor]
