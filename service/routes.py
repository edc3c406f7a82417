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
Especiales Admin Service

Service-level endpoints. The admin screens themselves live in the `ui`
blueprint; this module only describes the service and answers health probes.
"""

# Third-party
from flask import current_app as app, jsonify, url_for

# First-party
from service.common import status  # HTTP status codes


######################################################################
# Root endpoint
######################################################################
@app.route("/", methods=["GET"])
def index():
    """Root URL response"""
    return (
        jsonify(
            name="Especiales Admin",
            version="1.0.0",
            description="Admin interface for managing specials",
            paths={
                "ui": url_for("ui.index"),
                "health": url_for("health"),
            },
            api_url=app.config["ESPECIALES_API_URL"],
        ),
        status.HTTP_200_OK,
    )


######################################################################
# Endpoint: /health (K8s liveness/readiness)
######################################################################
@app.route("/health", methods=["GET"])
def health():
    """
    K8s health check endpoint
    Returns:
        JSON: {"status": "OK"} with HTTP 200
    Notes:
        - Does not call the specials API so probes stay stable when it is down.
    """
    app.logger.info("Health check requested")
    return jsonify(status="OK"), status.HTTP_200_OK
