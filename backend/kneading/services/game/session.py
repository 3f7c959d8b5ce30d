from dataclasses import dataclass
from typing import Callable, List, Optional

FORM_FIELDS = ('name', 'phone', 'email')


@dataclass
class EntryForm:
    name: str = ''
    phone: str = ''
    email: str = ''
    consent_given: bool = False

    def update(self, fields: dict) -> None:
        """Copy known keys from ``fields``; unknown keys are ignored."""
        for key in FORM_FIELDS:
            if key in fields:
                value = fields[key]
                setattr(self, key, '' if value is None else str(value))
        if 'consent_given' in fields:
            # Only an explicit true counts as consent
            self.consent_given = fields['consent_given'] is True

    def missing_fields(self) -> List[str]:
        return [key for key in FORM_FIELDS if not getattr(self, key).strip()]

    def validate(self) -> Optional[str]:
        """Return a message for the player, or None when the form is complete."""
        missing = self.missing_fields()
        if missing:
            return f"Please fill in: {', '.join(missing)}"
        if not self.consent_given:
            return 'Please accept the terms to continue'
        return None

    def to_dict(self):
        return {
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'consent_given': self.consent_given,
        }


@dataclass
class Session:
    """One playthrough: tap count and time left.

    Counting and ticking only happen while ``is_active``; once ``finish`` is
    called both values are frozen for good.
    """
    duration: int = 10
    knead_count: int = 0
    seconds_remaining: Optional[int] = None
    is_active: bool = False
    submitted: bool = False

    def __post_init__(self):
        if self.seconds_remaining is None:
            self.seconds_remaining = self.duration

    def begin(self) -> None:
        self.knead_count = 0
        self.seconds_remaining = self.duration
        self.is_active = True

    def tick(self) -> bool:
        """Take one second off the clock. Returns True once time is up."""
        if not self.is_active:
            return False
        if self.seconds_remaining > 0:
            self.seconds_remaining -= 1
        return self.seconds_remaining == 0

    def finish(self) -> None:
        self.is_active = False

    @property
    def time_fraction(self) -> float:
        if self.duration <= 0:
            return 0.0
        return self.seconds_remaining / self.duration

    def to_dict(self):
        return {
            'knead_count': self.knead_count,
            'seconds_remaining': self.seconds_remaining,
            'duration': self.duration,
            'time_fraction': self.time_fraction,
            'is_active': self.is_active,
        }


def register_tap(session: Optional[Session], feedback: Optional[Callable[[], None]] = None) -> bool:
    """Count one tap if the session is running.

    Every call while active counts; there is no debounce. ``feedback`` is
    called before returning so the client can pulse the sprite and sound.
    """
    if session is None or not session.is_active:
        return False
    session.knead_count += 1
    if feedback is not None:
        feedback()
    return True
