"""
Preview storage for staged uploads

Each staged file gets a preview written to a private temp directory. The
returned reference is what the form page links to; it must be released once
the file is submitted or the form is thrown away.
"""

import logging
import os
import shutil
import tempfile
import threading
import uuid
from typing import Optional

from werkzeug.utils import secure_filename

from service.models import StagedFile

logger = logging.getLogger("flask.app")


class PreviewStore:
    """Temp-file backed previews, addressed by opaque references"""

    def __init__(self, root: Optional[str] = None):
        self._root = root
        self._lock = threading.Lock()
        self._paths = {}

    def init_app(self, app):
        """Create the preview directory for this app"""
        self.close()
        self._root = tempfile.mkdtemp(prefix="especiales-previews-")
        app.extensions["especiales_previews"] = self
        logger.info("Preview directory at %s", self._root)

    @property
    def root(self) -> str:
        """Directory holding live previews"""
        if self._root is None:
            self._root = tempfile.mkdtemp(prefix="especiales-previews-")
        return self._root

    def __len__(self):
        return len(self._paths)

    def __contains__(self, ref):
        return ref in self._paths

    def create(self, staged: StagedFile) -> str:
        """Write a preview for `staged` and return its reference"""
        ref = uuid.uuid4().hex
        name = secure_filename(staged.filename) or "preview"
        path = os.path.join(self.root, f"{ref}-{name}")
        with open(path, "wb") as preview:
            preview.write(staged.content)
        with self._lock:
            self._paths[ref] = path
        return ref

    def path(self, ref: str) -> Optional[str]:
        """Filesystem path of a live preview, or None once released"""
        with self._lock:
            return self._paths.get(ref)

    def release(self, ref: str) -> None:
        """Free the preview; releasing twice is harmless"""
        with self._lock:
            path = self._paths.pop(ref, None)
        if path is None:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning("Preview %s was already gone", path)

    def close(self) -> None:
        """Release every preview and remove the directory"""
        with self._lock:
            self._paths.clear()
            root, self._root = self._root, None
        if root:
            shutil.rmtree(root, ignore_errors=True)


# Shared instance, configured by `init_app`
previews = PreviewStore()
