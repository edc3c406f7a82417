"""Admin UI blueprint for the Especiales service.

Mounts the three admin screens under `/ui`: the list of specials, and the
create / edit form. An open form is a `SpecialForm` kept in the draft store
under a token, so staged photos survive between requests until the form is
saved or cancelled.
"""

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    send_file,
    url_for,
)

from service.client import ApiError, ApiResponseError, api
from service.common import status
from service.drafts import drafts
from service.models import Categoria, StagedFile
from service.previews import previews
from service.workflow import CONFIRM_REMOVE_PHOTO, EDIT, SpecialForm


# Serve templates from service/templates and static assets from service/static
ui_bp = Blueprint(
    "ui",
    __name__,
    template_folder="../templates",
    static_folder="../static",
)

CONFIRM_DELETE_SPECIAL = "¿Estás seguro de eliminar este especial?"


def _navigate(target):
    """Navigator handed to each form; the view turns it into a redirect"""
    g.navigate_to = target


def _list_error_details(error: ApiError) -> str:
    """Status and body when the API answered, otherwise a no-response note"""
    if isinstance(error, ApiResponseError):
        return f"Status: {error.status_code}, Data: {current_app.json.dumps(error.payload)}"
    return "No se recibió respuesta del servidor"


def _get_form(token: str) -> SpecialForm:
    form = drafts.get(token)
    if form is None:
        abort(status.HTTP_404_NOT_FOUND, f"Draft '{token}' was not found or has expired.")
    return form


def _leave(token: str):
    """Drop the draft and go back to the list"""
    drafts.remove(token)
    return redirect(url_for("ui.index"), code=status.HTTP_303_SEE_OTHER)


######################################################################
# LIST Specials
######################################################################
@ui_bp.route("/ui", methods=["GET"])
def index():
    """List every special; on failure offer a retry"""
    current_app.logger.info("Request to list Specials")
    especiales = []
    error = None
    try:
        especiales = api.list_specials()
    except ApiError as err:
        current_app.logger.error("Error al obtener especiales: %s", err)
        error = "Error al obtener especiales: " + _list_error_details(err)
    return render_template(
        "index.html",
        title="Administrar Especiales",
        especiales=especiales,
        error=error,
        confirm_delete=CONFIRM_DELETE_SPECIAL,
        placeholder=current_app.config["PLACEHOLDER_IMAGE_URL"],
    )


######################################################################
# DELETE a Special
######################################################################
@ui_bp.route("/ui/especiales/<special_id>/eliminar", methods=["POST"])
def delete_special(special_id):
    """Delete a special once the user confirmed, then reload the list"""
    if request.form.get("confirm") != "1":
        return redirect(url_for("ui.index"), code=status.HTTP_303_SEE_OTHER)

    current_app.logger.info("Request to delete Special with id [%s]", special_id)
    try:
        api.delete_special(special_id)
    except ApiError as err:
        current_app.logger.error("Error al eliminar el especial: %s", err.payload or err)
        flash("Error al eliminar el especial: " + err.display_message, "error")
    return redirect(url_for("ui.index"), code=status.HTTP_303_SEE_OTHER)


######################################################################
# OPEN a form
######################################################################
@ui_bp.route("/ui/especiales/nuevo", methods=["GET"])
def new_special():
    """Open an empty create form"""
    form = SpecialForm(api, previews, _navigate)
    token = drafts.mount(form)
    return redirect(url_for("ui.show_draft", token=token))


@ui_bp.route("/ui/especiales/<special_id>/editar", methods=["GET"])
def edit_special(special_id):
    """Open an edit form seeded from the API"""
    form = SpecialForm(api, previews, _navigate, special_id=special_id)
    token = drafts.mount(form)
    form.load()
    return redirect(url_for("ui.show_draft", token=token))


######################################################################
# FORM screen and its actions
######################################################################
@ui_bp.route("/ui/borradores/<token>", methods=["GET"])
def show_draft(token):
    """Render the create/edit form"""
    form = _get_form(token)
    alert = form.alert
    form.alert = None
    return render_template(
        "form.html",
        title="Editar Especial" if form.mode == EDIT else "Agregar Especial",
        token=token,
        form=form,
        categorias=Categoria.values(),
        alert=alert,
        confirm_remove=CONFIRM_REMOVE_PHOTO,
        placeholder=current_app.config["PLACEHOLDER_IMAGE_URL"],
    )


@ui_bp.route("/ui/borradores/<token>", methods=["POST"])
def update_draft(token):
    """Keep typed values, stage selected files, and save when asked to"""
    form = _get_form(token)
    if form.load_failed:
        return redirect(url_for("ui.show_draft", token=token), code=status.HTTP_303_SEE_OTHER)

    form.draft.update(request.form)
    selected = [
        StagedFile.from_storage(storage)
        for storage in request.files.getlist("fotos")
        if storage and storage.filename
    ]
    form.stage_files(selected)

    if request.form.get("action") == "save":
        current_app.logger.info("Request to save %s", form)
        form.submit()
        if g.get("navigate_to"):
            return _leave(token)
    return redirect(url_for("ui.show_draft", token=token), code=status.HTTP_303_SEE_OTHER)


@ui_bp.route("/ui/borradores/<token>/recargar", methods=["POST"])
def reload_draft(token):
    """Retry a failed load"""
    form = _get_form(token)
    form.load()
    return redirect(url_for("ui.show_draft", token=token), code=status.HTTP_303_SEE_OTHER)


@ui_bp.route("/ui/borradores/<token>/fotos/<foto_id>/eliminar", methods=["POST"])
def remove_photo(token, foto_id):
    """Delete a stored photo immediately"""
    form = _get_form(token)
    form.remove_existing_photo(foto_id, confirmed=request.form.get("confirm") == "1")
    return redirect(url_for("ui.show_draft", token=token), code=status.HTTP_303_SEE_OTHER)


@ui_bp.route("/ui/borradores/<token>/previews/<int:index>", methods=["GET"])
def preview(token, index):
    """Serve the preview of a staged file"""
    form = _get_form(token)
    if index >= len(form.staged_previews):
        abort(status.HTTP_404_NOT_FOUND, f"Preview {index} was not found.")
    path = previews.path(form.staged_previews[index])
    if path is None:
        abort(status.HTTP_404_NOT_FOUND, f"Preview {index} was released.")
    return send_file(path, mimetype=form.staged_files[index].content_type)


@ui_bp.route("/ui/borradores/<token>/cancelar", methods=["POST"])
def cancel_draft(token):
    """Discard the form without touching the API"""
    form = _get_form(token)
    form.cancel()
    return _leave(token)
