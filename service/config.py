"""
Global Configuration for Application
"""
import os
import logging

# Base URL of the remote specials REST API
ESPECIALES_API_URL = os.getenv("ESPECIALES_API_URL", "http://localhost:8000").rstrip("/")

# Seconds before an outbound API request is abandoned
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# Idle form drafts older than this are discarded along with their previews
DRAFT_TTL_SECONDS = int(os.getenv("DRAFT_TTL_SECONDS", "3600"))

# Shown in place of a photo that fails to load
PLACEHOLDER_IMAGE_URL = os.getenv(
    "PLACEHOLDER_IMAGE_URL", "https://via.placeholder.com/100x100?text=No+image"
)

# Secret for session management (flash messages)
SECRET_KEY = os.getenv("SECRET_KEY", "sup3r-s3cr3t")
LOGGING_LEVEL = logging.INFO
