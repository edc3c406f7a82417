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
Models for Specials

Specials and their photos are owned by the remote specials API; the classes
here only mirror what it returns. `Draft` holds the three editable fields of
the create/edit form and `StagedFile` a local upload waiting to be submitted.
"""

import logging
from enum import Enum
from typing import List, Optional

logger = logging.getLogger("flask.app")


class DataValidationError(Exception):
    """Used for data validation errors when deserializing or submitting."""


class Categoria(Enum):
    """Enumeration of valid Special categories"""

    TEXTIL = "Textil"
    PROMOCIONAL = "Promocional"
    OTROS = "Otros"

    @classmethod
    def values(cls) -> List[str]:
        """Category labels in display order"""
        return [c.value for c in cls]


class Photo:
    """
    Class that represents a Photo stored by the remote API
    """

    def __init__(self, id=None, foto_path: str = ""):  # pylint: disable=redefined-builtin
        self.id = id
        self.foto_path = foto_path

    def __repr__(self):
        return f"<Photo {self.foto_path} id=[{self.id}]>"

    def __eq__(self, other):
        if not isinstance(other, Photo):
            return NotImplemented
        return self.id == other.id and self.foto_path == other.foto_path

    def serialize(self) -> dict:
        """Serializes a Photo into a dictionary."""
        return {"id": self.id, "foto_path": self.foto_path}

    def deserialize(self, data: dict):
        """
        Deserializes a Photo from a dictionary.

        Args:
            data (dict): a dictionary containing the photo data
        """
        try:
            self.id = data["id"]
            self.foto_path = data["foto_path"]
        except KeyError as error:
            raise DataValidationError(f"Invalid photo: missing '{error.args[0]}'") from error
        except TypeError as error:
            raise DataValidationError(
                "Invalid photo: body of request contained bad or no data"
            ) from error
        return self


class Special:
    """
    Class that represents a Special
    """

    def __init__(
        self,
        id=None,  # pylint: disable=redefined-builtin
        nombre: str = "",
        descripcion: str = "",
        categoria: str = "",
        fotos: Optional[List[Photo]] = None,
        foto_path: Optional[str] = None,
    ):
        self.id = id
        self.nombre = nombre
        self.descripcion = descripcion
        self.categoria = categoria
        self.fotos = list(fotos or [])
        # older records carry a single photo path instead of `fotos`
        self.foto_path = foto_path

    def __repr__(self):
        return f"<Special {self.nombre} id=[{self.id}]>"

    @property
    def cover_path(self) -> Optional[str]:
        """Storage path of the photo shown as thumbnail, if any"""
        if self.fotos:
            return self.fotos[0].foto_path
        return self.foto_path or None

    def serialize(self) -> dict:
        """Serializes a Special into a dictionary."""
        data = {
            "id": self.id,
            "nombre": self.nombre,
            "descripcion": self.descripcion,
            "categoria": self.categoria,
            "fotos": [foto.serialize() for foto in self.fotos],
        }
        if self.foto_path:
            data["foto_path"] = self.foto_path
        return data

    def deserialize(self, data: dict):
        """
        Deserializes a Special from a dictionary.

        `fotos` may be missing or null; both mean "no photos".

        Args:
            data (dict): a dictionary containing the special data
        """
        try:
            self.id = data["id"]
            self.nombre = data["nombre"]
            self.descripcion = data["descripcion"]
            self.categoria = data["categoria"]
            self.fotos = [Photo().deserialize(foto) for foto in data.get("fotos") or []]
            self.foto_path = data.get("foto_path")
        except AttributeError as error:
            raise DataValidationError("Invalid attribute: " + error.args[0]) from error
        except KeyError as error:
            raise DataValidationError(f"Invalid special: missing '{error.args[0]}'") from error
        except TypeError as error:
            raise DataValidationError(
                "Invalid special: body of request contained bad or no data"
            ) from error
        return self


class Draft:
    """The editable fields of a Special while a form is open"""

    FIELDS = ("nombre", "descripcion", "categoria")

    def __init__(self, nombre: str = "", descripcion: str = "", categoria: str = ""):
        self.nombre = nombre
        self.descripcion = descripcion
        self.categoria = categoria

    def __repr__(self):
        return f"<Draft {self.nombre!r} categoria={self.categoria!r}>"

    def __eq__(self, other):
        if not isinstance(other, Draft):
            return NotImplemented
        return self.serialize() == other.serialize()

    @classmethod
    def from_special(cls, special: Special) -> "Draft":
        """Seed a draft from a fetched Special"""
        return cls(special.nombre, special.descripcion, special.categoria)

    def copy(self) -> "Draft":
        """Returns an independent copy of this draft"""
        return Draft(self.nombre, self.descripcion, self.categoria)

    def update(self, data) -> None:
        """Overwrite fields present in `data` (a dict or form MultiDict)"""
        for name in self.FIELDS:
            if name in data:
                setattr(self, name, data[name])

    def serialize(self) -> dict:
        """Serializes the draft into the scalar multipart fields."""
        return {name: getattr(self, name) for name in self.FIELDS}

    def validate(self) -> None:
        """Enforce the required fields; raises DataValidationError"""
        for name in self.FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise DataValidationError(f"El campo '{name}' es obligatorio")
        if self.categoria not in Categoria.values():
            raise DataValidationError(
                f"El campo 'categoria' debe ser uno de: {', '.join(Categoria.values())}"
            )


class StagedFile:
    """A locally selected file that has not been uploaded yet"""

    def __init__(self, filename: str, content: bytes, content_type: str = "application/octet-stream"):
        self.filename = filename
        self.content = content
        self.content_type = content_type

    def __repr__(self):
        return f"<StagedFile {self.filename} bytes=[{len(self.content)}]>"

    @classmethod
    def from_storage(cls, storage) -> "StagedFile":
        """Build from a werkzeug FileStorage taken from an upload form"""
        return cls(
            storage.filename or "foto",
            storage.read(),
            storage.mimetype or "application/octet-stream",
        )
