"""
Entity Kinds
Declarative description of each submission kind. The workflow engine is
generic; everything that differs between registrations, questions,
partnerships, exhibitors and feedback lives here.

Column names in these definitions are the only identifiers ever interpolated
into SQL. Values always go through query parameters.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from summitdesk.models import Registration, Question, Partnership, Exhibitor, Feedback


@dataclass
class EntityKind:
    name: str
    plural: str
    table: str
    model: type
    statuses: Tuple[str, ...]
    success_states: FrozenSet[str]
    insert_columns: Tuple[str, ...]
    initial_status: str = 'pending'
    status_column: str = 'status'
    side_fields: Tuple[str, ...] = ()
    filter_columns: Tuple[str, ...] = ()
    # Extra SET fragments applied when moving into a given status
    status_side_effects: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    # Stats entries counted from a boolean column instead of the status value
    flag_counts: Dict[str, str] = field(default_factory=dict)
    analytics_event: Optional[str] = None
    label: str = ''
    created_message: str = 'Submitted successfully.'

    def __post_init__(self):
        if not self.label:
            self.label = self.name
        if self.initial_status not in self.statuses:
            raise ValueError(f"{self.name}: initial status {self.initial_status!r} not in {self.statuses}")

    def is_valid_status(self, status) -> bool:
        return status in self.statuses


REGISTRATION = EntityKind(
    name='registration',
    plural='registrations',
    table='registrations',
    model=Registration,
    statuses=('pending', 'paid', 'failed', 'refunded'),
    success_states=frozenset({'paid'}),
    status_column='payment_status',
    insert_columns=(
        'full_name', 'email', 'phone', 'profession', 'church', 'workshop_preference',
    ),
    side_fields=('payment_method', 'payment_reference'),
    filter_columns=('workshop_preference',),
    created_message='Registration submitted successfully! You will receive a confirmation email with payment details.',
)

QUESTION = EntityKind(
    name='question',
    plural='questions',
    table='questions',
    model=Question,
    statuses=('pending', 'reviewed', 'answered', 'archived'),
    success_states=frozenset({'answered'}),
    insert_columns=('name', 'question', 'category'),
    filter_columns=('category',),
    status_side_effects={
        'answered': (
            'is_answered = TRUE',
            'answered_at = NOW()',
            'answered_by = COALESCE(%(reviewed_by)s, answered_by)',
        ),
    },
    flag_counts={'answered': 'is_answered'},
    created_message="Question submitted successfully! We'll address it during the summit.",
)

PARTNERSHIP = EntityKind(
    name='partnership',
    plural='partnerships',
    table='partnerships',
    model=Partnership,
    statuses=('pending', 'contacted', 'confirmed', 'declined'),
    success_states=frozenset({'confirmed'}),
    insert_columns=(
        'organization_name', 'contact_person', 'email', 'phone', 'support_type', 'message',
    ),
    side_fields=('partnership_tier', 'partnership_value', 'follow_up_date'),
    filter_columns=('support_type',),
    analytics_event='partnership_inquiry',
    label='partnership inquiry',
    created_message='Partnership inquiry submitted successfully! We will contact you soon.',
)

EXHIBITOR = EntityKind(
    name='exhibitor',
    plural='exhibitors',
    table='exhibitors',
    model=Exhibitor,
    statuses=('pending', 'reviewed', 'approved', 'rejected'),
    success_states=frozenset({'approved'}),
    insert_columns=(
        'full_name', 'email', 'phone', 'company_name', 'years_of_operation', 'website',
        'idea_title', 'category', 'field_of_focus', 'areas_of_interest', 'uniqueness',
        'summary', 'business_model', 'target_market', 'want_to_team_up', 'looking_for',
        'sdg_alignment', 'other_sdg',
    ),
    filter_columns=('category',),
    label='exhibitor application',
    created_message='Your idea has been submitted successfully! We will review it and get back to you soon.',
)

FEEDBACK = EntityKind(
    name='feedback',
    plural='feedback',
    table='feedback',
    model=Feedback,
    statuses=('pending', 'reviewed', 'archived'),
    success_states=frozenset({'reviewed'}),
    insert_columns=(
        'full_name', 'email', 'phone', 'day_attended',
        'overall_rating', 'content_quality', 'speaker_quality',
        'organization_rating', 'venue_rating', 'networking_rating',
        'most_valuable', 'improvements', 'future_topics', 'recommend_likelihood',
        'additional_comments', 'workshop_feedback', 'favorite_workshop',
        'favorite_workshop_other', 'speaker_suggestions', 'speaker_specialization',
        'share_contact', 'speaker_contact',
    ),
    filter_columns=('day_attended',),
    created_message='Feedback submitted successfully!',
)

ALL_KINDS = (REGISTRATION, QUESTION, PARTNERSHIP, EXHIBITOR, FEEDBACK)

# Lookup by either singular or plural name ('partnership' / 'partnerships')
KINDS: Dict[str, EntityKind] = {}
for _kind in ALL_KINDS:
    KINDS[_kind.name] = _kind
    KINDS[_kind.plural] = _kind


def get_kind(name: str) -> EntityKind:
    """Resolve a kind by name. Raises KeyError for unknown names."""
    try:
        return KINDS[name.lower()]
    except KeyError:
        raise KeyError(f"Unknown submission kind: {name!r}. Valid kinds: {', '.join(k.plural for k in ALL_KINDS)}")
