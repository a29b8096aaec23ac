# staff/session.py

from dataclasses import dataclass, asdict
from typing import ClassVar, Optional

from django.conf import settings
from django.utils import timezone


@dataclass
class SessionContext:
    """
    The signed-in user and the clinic location they are working in.

    Stored in the Django session under SESSION_KEY and passed explicitly to
    the code that needs it, instead of being read from ambient globals.
    """
    user_id: int
    username: str
    role: str
    location_id: Optional[int]
    login_time: float

    SESSION_KEY: ClassVar[str] = 'clinic_session'

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_expired(self):
        max_age = settings.SESSION_MAX_AGE_HOURS * 3600
        return timezone.now().timestamp() - self.login_time > max_age

    @classmethod
    def for_user(cls, user):
        profile = getattr(user, 'staff_profile', None)
        if user.is_superuser or profile is None:
            role = 'admin' if user.is_superuser else 'normal'
            location_id = profile.location_id if profile else None
        else:
            role = profile.role
            location_id = profile.location_id
        return cls(
            user_id=user.pk,
            username=user.get_username(),
            role=role,
            location_id=location_id,
            login_time=timezone.now().timestamp(),
        )

    @classmethod
    def load(cls, request):
        data = request.session.get(cls.SESSION_KEY)
        if not data:
            return None
        try:
            context = cls(**data)
        except TypeError:
            cls.clear(request)
            return None
        if context.is_expired or context.user_id != request.user.pk:
            cls.clear(request)
            return None
        return context

    def save(self, request):
        request.session[self.SESSION_KEY] = asdict(self)

    @classmethod
    def clear(cls, request):
        request.session.pop(cls.SESSION_KEY, None)

    @classmethod
    def from_request(cls, request):
        """Loads the context of the request, building a fresh one for the user if needed."""
        context = cls.load(request)
        if context is None:
            context = cls.for_user(request.user)
            context.save(request)
        return context

    def switch_location(self, request, location_id):
        self.location_id = location_id
        self.save(request)

    def scope(self, queryset, field='location'):
        """Limits a queryset to the current location; global admins see everything."""
        if self.location_id is None and self.is_admin:
            return queryset
        return queryset.filter(**{f'{field}_id': self.location_id})
