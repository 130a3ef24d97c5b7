"""
Form Validation
pydantic models for every public form and admin status update. Payloads are
validated here, before anything reaches the workflow; a model that fails to
build never touches the database.

Browser forms send camelCase keys (fullName, supportType); the CLI and tests
use snake_case. Both are accepted.
"""

import re
from datetime import date
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

PHONE_PATTERN = r'^[+]?[\d\s\-()]+$'
_WEBSITE_RE = re.compile(r'^https?://.+')

WORKSHOP_PREFERENCES = ('innovation', 'finance', 'healthcare', 'media')
SUPPORT_TYPES = ('financial', 'venue', 'media', 'logistics', 'other')
PAYMENT_METHODS = ('mpesa', 'bank_transfer', 'card')
PARTNERSHIP_TIERS = ('platinum', 'gold', 'silver', 'bronze')
# partnerships.partnership_value is a PostgreSQL INTEGER
MAX_PARTNERSHIP_VALUE = 2_147_483_647


class FormModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore',
    )

    def to_payload(self) -> Dict[str, Any]:
        """snake_case dict ready for the intake functions"""
        return self.model_dump()


def _email_length(value: str) -> str:
    if len(value) > 255:
        raise ValueError("Email must be less than 255 characters")
    return value


Email = Annotated[EmailStr, AfterValidator(_email_length)]
Phone = Annotated[str, Field(min_length=10, max_length=20, pattern=PHONE_PATTERN)]
Rating = Annotated[int, Field(ge=1, le=5)]


# =============================================================================
# INTAKE FORMS
# =============================================================================

class RegistrationForm(FormModel):
    full_name: str = Field(..., min_length=2, max_length=255)
    email: Email
    phone: Phone
    profession: str = Field(..., min_length=2, max_length=255)
    church: Optional[str] = Field(None, max_length=255)
    workshop_preference: Literal[WORKSHOP_PREFERENCES]


class QuestionForm(FormModel):
    name: Optional[str] = Field(None, max_length=255)
    question: str = Field(..., min_length=10, max_length=1000)
    category: Optional[str] = Field(None, max_length=100)
    is_anonymous: bool = False

    @model_validator(mode='after')
    def name_required_unless_anonymous(self):
        if not self.is_anonymous and len(self.name or '') < 2:
            raise ValueError('Name must be at least 2 characters')
        return self


class PartnershipForm(FormModel):
    organization_name: str = Field(..., min_length=2, max_length=255)
    contact_person: str = Field(..., min_length=2, max_length=255)
    email: Email
    phone: Phone
    support_type: Literal[SUPPORT_TYPES]
    message: Optional[str] = Field(None, max_length=1000)


class ExhibitorForm(FormModel):
    full_name: str = Field(..., min_length=2, max_length=255)
    email: Email
    phone: Phone
    company_name: Optional[str] = Field(None, max_length=255)
    years_of_operation: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=500)
    idea_title: str = Field(..., min_length=5, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    field_of_focus: str = Field(..., min_length=5, max_length=255)
    areas_of_interest: Optional[str] = Field(None, max_length=500)
    uniqueness: str = Field(..., min_length=20, max_length=2000)
    summary: str = Field(..., min_length=20, max_length=2000)
    business_model: str = Field(..., min_length=10, max_length=2000)
    target_market: str = Field(..., min_length=10, max_length=2000)
    want_to_team_up: Literal['yes', 'no']
    looking_for: Optional[str] = Field(None, max_length=1000)
    sdg_alignment: List[str] = Field(default_factory=list)
    other_sdg: Optional[str] = Field(None, max_length=500)

    @field_validator('website')
    @classmethod
    def website_must_be_http(cls, v):
        if v and not _WEBSITE_RE.match(v):
            raise ValueError('Please enter a valid website URL starting with http:// or https://')
        return v


class FeedbackForm(FormModel):
    """Ratings arrive as strings from radio groups; pydantic coerces '4' -> 4."""
    full_name: str = Field(..., min_length=2, max_length=255)
    email: Email
    phone: Optional[str] = Field(None, max_length=20)
    day_attended: Literal['yes', 'partial']
    overall_rating: Rating
    content_quality: Rating
    speaker_quality: Rating
    organization_rating: Rating
    venue_rating: Rating
    networking_rating: Rating
    most_valuable: str = Field(..., min_length=1)
    improvements: str = Field(..., min_length=1)
    future_topics: str = Field(..., min_length=1)
    recommend_likelihood: Optional[str] = Field(None, max_length=50)
    additional_comments: Optional[str] = None
    workshop_feedback: Optional[str] = None
    favorite_workshop: Optional[str] = Field(None, max_length=255)
    favorite_workshop_other: Optional[str] = Field(None, max_length=255)
    speaker_suggestions: Optional[str] = None
    speaker_specialization: Optional[str] = Field(None, max_length=255)
    share_contact: Optional[Literal['yes', 'no']] = None
    speaker_contact: Optional[str] = Field(None, max_length=255)

    @field_validator('share_contact', mode='before')
    @classmethod
    def blank_share_contact(cls, v):
        return v or None


# =============================================================================
# ADMIN REQUESTS
# =============================================================================

class StatusUpdate(FormModel):
    """
    The status value itself is checked by the workflow against the kind's
    enum, so the rejection message can list the allowed values.
    """
    status: str = Field(..., min_length=1)
    reviewed_by: Optional[str] = Field(None, max_length=255)

    def reviewer(self) -> Optional[str]:
        return self.reviewed_by

    def side_fields(self) -> Dict[str, Any]:
        """Kind-specific extras; None values are left untouched by the workflow."""
        return self.model_dump(exclude={"status", "reviewed_by", "answered_by"})


class QuestionStatusUpdate(StatusUpdate):
    answered_by: Optional[str] = Field(None, max_length=255)

    def reviewer(self) -> Optional[str]:
        return self.answered_by or self.reviewed_by


class RegistrationStatusUpdate(StatusUpdate):
    payment_method: Optional[Literal[PAYMENT_METHODS]] = None
    payment_reference: Optional[str] = Field(None, max_length=255)

    @field_validator('payment_method', mode='before')
    @classmethod
    def blank_method(cls, v):
        return v or None


class PartnershipStatusUpdate(StatusUpdate):
    partnership_tier: Optional[Literal[PARTNERSHIP_TIERS]] = None
    partnership_value: Optional[int] = Field(None, ge=0, le=MAX_PARTNERSHIP_VALUE)
    follow_up_date: Optional[date] = None

    @field_validator('partnership_tier', 'partnership_value', 'follow_up_date', mode='before')
    @classmethod
    def blank_side_fields(cls, v):
        return None if v == '' else v


STATUS_UPDATE_MODELS = {
    'registration': RegistrationStatusUpdate,
    'question': QuestionStatusUpdate,
    'partnership': PartnershipStatusUpdate,
}


def status_update_model(kind_name: str) -> type:
    return STATUS_UPDATE_MODELS.get(kind_name, StatusUpdate)


class AdminLogin(FormModel):
    password: str = Field(..., min_length=1)


# =============================================================================
# ERROR FORMATTING
# =============================================================================

def format_validation_errors(errors: Iterable[dict]) -> Dict[str, str]:
    """
    Flatten pydantic error dicts into {'field.path': message}. The leading
    'body' segment FastAPI adds is dropped.
    """
    formatted = {}
    for error in errors:
        loc = [str(part) for part in error.get('loc', ()) if part != 'body']
        formatted['.'.join(loc) or '__root__'] = error.get('msg', 'Invalid value')
    return formatted


def summarize_validation_errors(errors: Iterable[dict]) -> str:
    """One human-readable line for the envelope's error field."""
    formatted = format_validation_errors(errors)
    if not formatted:
        return 'Invalid request'
    return '; '.join(
        msg if field == '__root__' else f"{field}: {msg}"
        for field, msg in formatted.items()
    )
