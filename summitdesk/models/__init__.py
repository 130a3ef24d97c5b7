"""
Data Models
Dataclasses for all entities. These are pure Python objects, no database logic.
Field names match table columns exactly so a RealDictCursor row unpacks
straight into the matching class.
"""

import json
from dataclasses import dataclass, field, asdict, is_dataclass
from datetime import date, datetime
from typing import Any, List, Optional


@dataclass
class Registration:
    """Attendee registration; the lifecycle field is payment_status."""
    id: Optional[str] = None
    full_name: str = ''
    email: str = ''
    phone: str = ''
    profession: str = ''
    church: Optional[str] = None
    workshop_preference: str = ''
    payment_status: str = 'pending'
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    registration_date: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Question:
    """Question or idea submitted for the summit panels"""
    id: Optional[str] = None
    name: str = ''
    question: str = ''
    category: Optional[str] = None
    status: str = 'pending'
    is_answered: bool = False
    answered_at: Optional[datetime] = None
    answered_by: Optional[str] = None
    upvotes: int = 0
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Partnership:
    """Partnership / sponsorship inquiry. At most one per email."""
    id: Optional[str] = None
    organization_name: str = ''
    contact_person: str = ''
    email: str = ''
    phone: str = ''
    support_type: str = ''
    message: Optional[str] = None
    status: str = 'pending'
    partnership_tier: Optional[str] = None
    partnership_value: Optional[int] = None
    follow_up_date: Optional[date] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Exhibitor:
    """Exhibitor pitch. sdg_alignment is stored as a JSON-encoded list."""
    id: Optional[str] = None
    full_name: str = ''
    email: str = ''
    phone: str = ''
    company_name: Optional[str] = None
    years_of_operation: Optional[str] = None
    website: Optional[str] = None
    idea_title: str = ''
    category: str = ''
    field_of_focus: str = ''
    areas_of_interest: Optional[str] = None
    uniqueness: str = ''
    summary: str = ''
    business_model: str = ''
    target_market: str = ''
    want_to_team_up: str = 'no'
    looking_for: Optional[str] = None
    sdg_alignment: str = '[]'
    other_sdg: Optional[str] = None
    status: str = 'pending'
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def sdg_list(self) -> List[str]:
        """Decode sdg_alignment; a malformed value reads as no alignment."""
        try:
            value = json.loads(self.sdg_alignment or '[]')
        except ValueError:
            return []
        return [str(v) for v in value] if isinstance(value, list) else []


@dataclass
class Feedback:
    """Post-event attendee feedback with six 1-5 ratings"""
    id: Optional[str] = None
    full_name: str = ''
    email: str = ''
    phone: Optional[str] = None
    day_attended: str = 'yes'
    overall_rating: int = 0
    content_quality: int = 0
    speaker_quality: int = 0
    organization_rating: int = 0
    venue_rating: int = 0
    networking_rating: int = 0
    most_valuable: str = ''
    improvements: str = ''
    future_topics: str = ''
    recommend_likelihood: Optional[str] = None
    additional_comments: Optional[str] = None
    workshop_feedback: Optional[str] = None
    favorite_workshop: Optional[str] = None
    favorite_workshop_other: Optional[str] = None
    speaker_suggestions: Optional[str] = None
    speaker_specialization: Optional[str] = None
    share_contact: Optional[str] = None
    speaker_contact: Optional[str] = None
    status: str = 'pending'
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class AnalyticsEvent:
    """One row of the analytics event log"""
    id: Optional[str] = None
    event_type: str = ''
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass
class Document:
    """A file in the document library, described from its stored filename"""
    id: str
    name: str
    original_name: str
    url: str
    size: int
    type: str
    category: str
    uploaded_at: datetime


@dataclass
class Photo:
    """A gallery image"""
    id: str
    name: str
    url: str
    thumbnail_url: str
    category: str
    uploaded_at: datetime


@dataclass
class RequestOrigin:
    """Network metadata of the request that submitted a form"""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


# Failure tags carried by Result; never serialized into the envelope.
FAILURE_INVALID = 'invalid'
FAILURE_DUPLICATE = 'duplicate'
FAILURE_NOT_FOUND = 'not_found'
FAILURE_STORAGE = 'storage'
FAILURE_UNAUTHORIZED = 'unauthorized'


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


@dataclass
class Result:
    """
    Outcome of every workflow operation.

    to_dict() renders the wire envelope {success, data?, error?, message?}.
    `failure` says which kind of failure occurred so the HTTP layer can pick a
    status code; callers are expected to branch on `success` only.
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None
    failure: Optional[str] = field(default=None, repr=False)

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> 'Result':
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, failure: str = FAILURE_STORAGE) -> 'Result':
        return cls(success=False, error=error, failure=failure)

    def to_dict(self) -> dict:
        envelope = {'success': self.success}
        if self.data is not None:
            envelope['data'] = _plain(self.data)
        if self.error is not None:
            envelope['error'] = self.error
        if self.message is not None:
            envelope['message'] = self.message
        return envelope
