"""Request body schemas for the public forms and auth endpoints."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.security.validation.input_sanitizer import (
    sanitize_email,
    sanitize_phone,
    sanitize_text,
)

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")


class FormModel(BaseModel):
    """Accepts camelCase keys from the site's forms and snake_case from Python."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


def _clean_required(value: str) -> str:
    cleaned = sanitize_text(value) or ""
    if not cleaned:
        raise ValueError("This field is required")
    return cleaned


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return sanitize_text(value) or None


def _clean_phone(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    phone = sanitize_phone(value)
    if not phone:
        return None
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Invalid phone number format")
    return phone


class ContactForm(FormModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=30)
    company: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(min_length=10, max_length=5000)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return sanitize_email(v) if isinstance(v, str) else v

    @field_validator("first_name", "last_name", "message")
    @classmethod
    def _required_text(cls, v: str) -> str:
        return _clean_required(v)

    @field_validator("company")
    @classmethod
    def _optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)


class GetStartedForm(FormModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    company: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=30)
    role: Optional[str] = Field(default=None, max_length=100)
    project_description: str = Field(min_length=10, max_length=5000)
    service_interests: List[str] = Field(min_length=1, max_length=10)
    contact_method: Literal["email", "phone", "video"]
    timeline: Optional[str] = Field(default=None, max_length=100)
    budget: Optional[str] = Field(default=None, max_length=100)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return sanitize_email(v) if isinstance(v, str) else v

    @field_validator("first_name", "last_name", "company", "project_description")
    @classmethod
    def _required_text(cls, v: str) -> str:
        return _clean_required(v)

    @field_validator("role", "timeline", "budget")
    @classmethod
    def _optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)

    @field_validator("service_interests")
    @classmethod
    def _services(cls, v: List[str]) -> List[str]:
        cleaned = []
        for item in v:
            if len(item) > 100:
                raise ValueError("Service interest is too long")
            text = sanitize_text(item)
            if text:
                cleaned.append(text)
        if not cleaned:
            raise ValueError("Please select at least one service area")
        return cleaned


class SignupForm(FormModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return sanitize_email(v) if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        cleaned = _clean_required(v)
        if len(cleaned) < 2:
            raise ValueError("Name must be at least 2 characters")
        return cleaned

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        rules = [
            (r"[A-Z]", "Password must contain at least one uppercase letter"),
            (r"[a-z]", "Password must contain at least one lowercase letter"),
            (r"[0-9]", "Password must contain at least one number"),
            (r"[^A-Za-z0-9]", "Password must contain at least one special character"),
        ]
        for pattern, message in rules:
            if not re.search(pattern, v):
                raise ValueError(message)
        return v


class SigninForm(FormModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return sanitize_email(v) if isinstance(v, str) else v


class RateLimitCheck(FormModel):
    identifier: str = Field(min_length=1, max_length=200)

    @field_validator("identifier")
    @classmethod
    def _identifier(cls, v: str) -> str:
        return _clean_required(v)


class CspViolation(BaseModel):
    """The ``csp-report`` object browsers post; keys are kebab-case."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    document_uri: Optional[str] = Field(default=None, alias="document-uri")
    referrer: Optional[str] = None
    violated_directive: Optional[str] = Field(default=None, alias="violated-directive")
    effective_directive: Optional[str] = Field(default=None, alias="effective-directive")
    original_policy: Optional[str] = Field(default=None, alias="original-policy")
    disposition: Optional[str] = None
    blocked_uri: Optional[str] = Field(default=None, alias="blocked-uri")
    line_number: Optional[int] = Field(default=None, alias="line-number")
    column_number: Optional[int] = Field(default=None, alias="column-number")
    source_file: Optional[str] = Field(default=None, alias="source-file")
    status_code: Optional[int] = Field(default=None, alias="status-code")
    script_sample: Optional[str] = Field(default=None, alias="script-sample")


class CspReportBody(BaseModel):
    csp_report: CspViolation = Field(alias="csp-report")

    model_config = ConfigDict(populate_by_name=True)

    def log_fields(self) -> Dict[str, Any]:
        v = self.csp_report
        return {
            "document_uri": v.document_uri,
            "violated_directive": v.violated_directive,
            "blocked_uri": v.blocked_uri,
            "source_file": v.source_file,
            "line_number": v.line_number,
            "column_number": v.column_number,
            "script_sample": v.script_sample,
        }


class AssignmentUpdate(FormModel):
    submission_id: int = Field(gt=0)
    staff_email: str = Field(min_length=3, max_length=255)
    action: Literal["assign", "remove"]

    @field_validator("staff_email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return sanitize_email(v) if isinstance(v, str) else v


class AdminSubmissionsQuery(FormModel):
    type: Literal["all", "contact", "get-started"] = "all"
    page: int = Field(default=1, ge=1, le=1000)
    limit: int = Field(default=10, ge=1, le=100)
    search: Optional[str] = Field(default=None, max_length=200)

    @field_validator("search")
    @classmethod
    def _search(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)
