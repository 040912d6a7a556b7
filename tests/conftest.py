"""
Test configuration and fixtures.

Provides:
- In-memory SQLite session per test (schema created from the ORM models)
- Admin + bearer token fixtures
- A small builder for forms, columns, bindings, options and rules
- HTTPX AsyncClient bound to the app with the session overridden
"""
import io
import os
import tempfile
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator, Generator

# Settings are read at import time; configure before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["REDIS_URL"] = ""
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="formbuilder-uploads-")
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

import pytest
from httpx import ASGITransport, AsyncClient
from pypdf import PdfWriter
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from formbuilder.core.deps import get_db
from formbuilder.core.otp_store import reset_otp_store
from formbuilder.core.security import create_access_token
from formbuilder.db.base import Base
from formbuilder.db.enums import ValidationKind
from formbuilder.db.models import (
    AdminUser,
    ColumnOption,
    DynamicColumn,
    Form,
    FormColumnBinding,
    ValidationRule,
    ValidationType,
)
from formbuilder.main import app
from formbuilder.services import validation_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Fresh database per test; app code is free to commit."""
    session = sessionmaker(bind=engine, autoflush=False)()
    validation_service.seed_validation_types(session)
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _fresh_otp_store():
    reset_otp_store()
    yield
    reset_otp_store()


@pytest.fixture(scope="function")
def admin(db: Session) -> AdminUser:
    user = AdminUser(name="Form Owner", email="owner@example.com", password_hash="x")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def other_admin(db: Session) -> AdminUser:
    user = AdminUser(name="Someone Else", email="else@example.com", password_hash="x")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_token(admin: AdminUser) -> str:
    return create_access_token(admin.id, admin.name, admin.role)


# =============================================================================
# Form Builder
# =============================================================================

@dataclass
class FormBuilder:
    """Creates definition rows directly, bypassing service-level checks."""

    db: Session
    owner: AdminUser

    def form(self, name: str = "Application", **kwargs) -> Form:
        form = Form(name=name, owner_id=self.owner.id, **kwargs)
        self.db.add(form)
        self.db.commit()
        self.db.refresh(form)
        return form

    def column(self, name: str, data_type: str = "text", **kwargs) -> DynamicColumn:
        column = DynamicColumn(
            name=name, data_type=data_type, owner_id=self.owner.id, **kwargs
        )
        self.db.add(column)
        self.db.commit()
        self.db.refresh(column)
        return column

    def bind(
        self,
        form: Form,
        column: DynamicColumn,
        sequence_no: int = 1,
        form_no: int = 1,
        **kwargs,
    ) -> FormColumnBinding:
        binding = FormColumnBinding(
            form_id=form.id,
            column_id=column.id,
            sequence_no=sequence_no,
            form_no=form_no,
            owner_id=self.owner.id,
            **kwargs,
        )
        self.db.add(binding)
        self.db.commit()
        self.db.refresh(binding)
        return binding

    def options(self, form: Form, column: DynamicColumn, *names: str) -> None:
        for name in names:
            self.db.add(
                ColumnOption(
                    kind=column.data_type,
                    column_id=column.id,
                    form_id=form.id,
                    name=name,
                    owner_id=self.owner.id,
                )
            )
        self.db.commit()

    def rule(self, form: Form, column: DynamicColumn, kind: ValidationKind) -> ValidationRule:
        validation_type = (
            self.db.query(ValidationType).filter(ValidationType.name == kind.value).one()
        )
        rule = ValidationRule(
            validation_type_id=validation_type.id, column_id=column.id, form_id=form.id
        )
        self.db.add(rule)
        self.db.commit()
        return rule


@pytest.fixture(scope="function")
def builder(db: Session, admin: AdminUser) -> FormBuilder:
    return FormBuilder(db=db, owner=admin)


@pytest.fixture(scope="function")
def free_form(builder: FormBuilder):
    """Free form with name (required, seq 1) and email (seq 2) columns."""
    form = builder.form("Registration")
    name = builder.column("Name")
    email = builder.column("Email", "email")
    builder.bind(form, name, sequence_no=1)
    builder.bind(form, email, sequence_no=2)
    builder.rule(form, name, ValidationKind.REQUIRED)
    return form, name, email


@pytest.fixture(scope="function")
def paid_form(builder: FormBuilder):
    """Form with a fee of 500 and two text columns."""
    form = builder.form("Paid Workshop", fee=Decimal("500"))
    first = builder.column("Full Name")
    second = builder.column("City")
    builder.bind(form, first, sequence_no=1)
    builder.bind(form, second, sequence_no=2)
    return form, first, second


# =============================================================================
# Files
# =============================================================================

def make_pdf(pages: int) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes():
    return make_pdf


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(db: Session, admin_token: str) -> AsyncGenerator[AsyncClient, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {admin_token}"},
    ) as c:
        yield c

    app.dependency_overrides.clear()
