######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Create / Edit workflow for a Special

One `SpecialForm` exists per open form. It owns the draft fields, the mirror
of the photos already stored on the server, and the files staged for upload
with their previews. Removing a stored photo hits the API right away; new
photos wait for `submit()`, which sends everything in one multipart request.
"""

import logging
from typing import Callable, Iterable, List, Optional

from service.client import ApiError, ApiValidationError, SpecialsClient
from service.models import DataValidationError, Draft, Photo, StagedFile
from service.previews import PreviewStore

logger = logging.getLogger("flask.app")

CREATE = "create"
EDIT = "edit"

# target handed to the navigator when the form is left
LIST_VIEW = "list"

CONFIRM_REMOVE_PHOTO = "¿Eliminar esta foto?"
REMOVE_PHOTO_FAILED = "No se pudo eliminar la foto"


class SpecialForm:  # pylint: disable=too-many-instance-attributes
    """
    State and operations of one create/edit form
    """

    def __init__(
        self,
        client: SpecialsClient,
        previews: PreviewStore,
        navigate: Callable[[str], None],
        special_id: Optional[str] = None,
    ):
        self.client = client
        self.previews = previews
        self.navigate = navigate
        self.special_id = special_id or None
        self.mode = EDIT if self.special_id else CREATE

        self.draft = Draft()
        self.existing_photos: List[Photo] = []
        self.staged_files: List[StagedFile] = []
        self.staged_previews: List[str] = []

        self.loading = False
        self.error: Optional[str] = None
        self.alert: Optional[str] = None
        self.load_failed = False
        self.discarded = False

    def __repr__(self):
        return f"<SpecialForm mode={self.mode} id=[{self.special_id}]>"

    @property
    def can_submit(self) -> bool:
        """False while a request is in flight or after a failed load"""
        return not (self.loading or self.load_failed or self.discarded)

    ##################################################
    # Load
    ##################################################

    def load(self) -> bool:
        """Fetch the Special being edited and seed the form with it"""
        if self.mode != EDIT:
            return False
        if self.loading:
            logger.warning("Ignoring load of %s: request already in progress", self)
            return False

        logger.info("Loading Special with id [%s]", self.special_id)
        self.loading = True
        try:
            special = self.client.get_special(self.special_id)
        except ApiError as error:
            logger.error("Error al obtener el especial: %s", error.payload or error)
            if not self.discarded:
                self.error = "Error al obtener el especial: " + error.message
                self.load_failed = True
            return False
        finally:
            self.loading = False

        if self.discarded:
            return False
        self.draft = Draft.from_special(special)
        self.existing_photos = list(special.fotos)
        self.load_failed = False
        self.error = None
        return True

    ##################################################
    # Staged files
    ##################################################

    def stage_files(self, files: Iterable[StagedFile]) -> None:
        """Append files (and a preview for each) to what will be uploaded"""
        for staged in files:
            # the preview is created first so a failure leaves both lists alone
            ref = self.previews.create(staged)
            self.staged_files.append(staged)
            self.staged_previews.append(ref)
            logger.info("Staged %s for upload", staged.filename)

    def release_previews(self) -> None:
        """Free every preview resource and forget the staged files"""
        for ref in self.staged_previews:
            self.previews.release(ref)
        self.staged_files = []
        self.staged_previews = []

    ##################################################
    # Existing photos
    ##################################################

    def remove_existing_photo(self, foto_id, confirmed: bool) -> bool:
        """Delete a stored photo right away; nothing happens unless confirmed"""
        if not confirmed:
            return False
        if not any(str(foto.id) == str(foto_id) for foto in self.existing_photos):
            logger.warning("Photo [%s] does not belong to %s", foto_id, self)
            return False

        self.alert = None
        try:
            self.client.delete_photo(foto_id)
        except ApiError as error:
            logger.error("Error al eliminar la foto: %s", error.payload or error)
            if not self.discarded:
                self.alert = REMOVE_PHOTO_FAILED
            return False

        if not self.discarded:
            self.existing_photos = [
                foto for foto in self.existing_photos if str(foto.id) != str(foto_id)
            ]
        return True

    ##################################################
    # Submit / Cancel
    ##################################################

    def submit(self) -> bool:
        """Send the draft and staged files as one create or update request

        On failure every piece of local state is left as it was so the user
        can try again.
        """
        if not self.can_submit:
            logger.warning("Ignoring submit of %s", self)
            return False

        self.loading = True
        self.error = None
        try:
            self.draft.validate()
            fields = self.draft.serialize()
            if self.mode == EDIT:
                self.client.update_special(self.special_id, fields, self.staged_files)
            else:
                self.client.create_special(fields, self.staged_files)
        except DataValidationError as error:
            self.error = "Validación fallida: " + str(error)
            return False
        except ApiValidationError as error:
            logger.error("Errores de validación: %s", error.errors)
            if not self.discarded:
                self.error = "Validación fallida: " + ", ".join(error.flat_messages())
            return False
        except ApiError as error:
            logger.error("Error completo al guardar el especial: %s", error.payload or error)
            if not self.discarded:
                self.error = "Error al guardar el especial: " + error.display_message
            return False
        finally:
            self.loading = False

        logger.info("Saved %s", self)
        if not self.discarded:
            self.discard()
            self.navigate(LIST_VIEW)
        return True

    def cancel(self) -> None:
        """Throw the form away and go back to the list"""
        self.discard()
        self.navigate(LIST_VIEW)

    def discard(self) -> None:
        """End of life: release previews and ignore any late results"""
        if self.discarded:
            return
        self.release_previews()
        self.discarded = True
