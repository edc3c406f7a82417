"""
Draft Store

Keeps the open create/edit forms between requests. A form is mounted when a
create or edit screen is opened and gets an opaque token; it is dropped when
it is cancelled, saved, or left idle for longer than DRAFT_TTL_SECONDS.
"""

import logging
import threading
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from service.workflow import SpecialForm

logger = logging.getLogger("flask.app")


class DraftStore:
    """Registry of open SpecialForm instances keyed by token"""

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._forms: Dict[str, Tuple[SpecialForm, float]] = {}

    def init_app(self, app):
        """Configure from the Flask app config"""
        self.ttl_seconds = app.config.get("DRAFT_TTL_SECONDS", self.ttl_seconds)
        self.clear()
        app.extensions["especiales_drafts"] = self

    def __len__(self):
        return len(self._forms)

    def mount(self, form: SpecialForm) -> str:
        """Register a new form and return its token"""
        self.purge_expired()
        token = uuid.uuid4().hex
        with self._lock:
            self._forms[token] = (form, self._clock())
        logger.info("Mounted %s as draft %s", form, token)
        return token

    def get(self, token: str) -> Optional[SpecialForm]:
        """The live form for `token`, or None if unknown or expired"""
        self.purge_expired()
        with self._lock:
            entry = self._forms.get(token)
            if entry is None:
                return None
            form = entry[0]
            if form.discarded:
                del self._forms[token]
                return None
            self._forms[token] = (form, self._clock())
        return form

    def remove(self, token: str) -> None:
        """Forget a form, discarding it if it is still live"""
        with self._lock:
            entry = self._forms.pop(token, None)
        if entry is not None:
            entry[0].discard()

    def purge_expired(self) -> int:
        """Discard forms idle for longer than the TTL; returns how many"""
        cutoff = self._clock() - self.ttl_seconds
        with self._lock:
            expired = [token for token, (_, seen) in self._forms.items() if seen < cutoff]
            forms = [self._forms.pop(token)[0] for token in expired]
        for form in forms:
            logger.info("Draft for %s expired", form)
            form.discard()
        return len(forms)

    def clear(self) -> None:
        """Discard every form"""
        with self._lock:
            forms = [form for form, _ in self._forms.values()]
            self._forms.clear()
        for form in forms:
            form.discard()


# Shared instance, configured by `init_app`
drafts = DraftStore()
