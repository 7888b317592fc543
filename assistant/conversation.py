import uuid

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

MAX_TURNS = 20
KEY_PREFIX = "assistant:conversation:"


class Conversation:
    """Chat turns kept in the cache; an expired conversation simply starts over."""

    def __init__(self, conversation_id=None):
        self.id = conversation_id or uuid.uuid4().hex
        self.turns = cache.get(self.key) or []

    @property
    def key(self):
        return f"{KEY_PREFIX}{self.id}"

    def add(self, role, content, **extra):
        turn = {"role": role, "content": content, "at": timezone.now().isoformat()}
        turn.update(extra)
        self.turns.append(turn)
        self.turns = self.turns[-MAX_TURNS:]

    def save(self):
        cache.set(self.key, self.turns, timeout=settings.ASSISTANT_CONVERSATION_TTL)
