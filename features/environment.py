"""Behave environment hooks for the Especiales admin UI.

A headless Chrome/Chromium session is shared by every scenario. The admin
service (and the specials API behind it) must already be running.

Settings:
  BASE_URL       admin service root (env or `-D BASE_URL=...`),
                 default http://localhost:8080
  CHROME_BIN     browser binary, when not on a standard path
  CHROMEDRIVER   driver binary; without it Selenium Manager resolves one,
                 or webdriver-manager does when USE_WDM=1
  WAIT_SECONDS   implicit wait for element lookups, default 5
"""

from __future__ import annotations

import os
import shutil
from typing import Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService

BROWSERS = ("chromium", "chromium-browser", "google-chrome", "chrome")
DRIVERS = ("/usr/bin/chromedriver", "/usr/lib/chromium/chromedriver")


def _first_existing(env_var: str, candidates, names=()) -> Optional[str]:
    """Env override, then known paths, then a PATH lookup"""
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override
    for path in candidates:
        if os.path.exists(path):
            return path
    for name in names:
        found = shutil.which(name)
        if found:
            return found
    return None


def _chrome_service() -> Optional[ChromeService]:
    driver = _first_existing("CHROMEDRIVER", DRIVERS, ("chromedriver",))
    if driver:
        return ChromeService(executable_path=driver)
    if os.getenv("USE_WDM") == "1":
        from webdriver_manager.chrome import ChromeDriverManager  # pylint: disable=import-outside-toplevel

        return ChromeService(ChromeDriverManager().install())
    # Selenium Manager picks a driver
    return None


def before_all(context):
    """Start a headless browser and remember the base URL."""
    context.base_url = (
        os.getenv("BASE_URL")
        or context.config.userdata.get("BASE_URL")
        or "http://localhost:8080"
    ).rstrip("/")

    options = ChromeOptions()
    for argument in ("--headless=new", "--no-sandbox", "--disable-dev-shm-usage"):
        options.add_argument(argument)
    binary = _first_existing("CHROME_BIN", [f"/usr/bin/{name}" for name in BROWSERS[:3]], BROWSERS)
    if binary:
        options.binary_location = binary

    try:
        service = _chrome_service()
        if service:
            context.browser = webdriver.Chrome(service=service, options=options)
        else:
            context.browser = webdriver.Chrome(options=options)
    except Exception as exc:  # pragma: no cover
        raise RuntimeError(
            "Cannot start headless Chrome/Chromium. Install chromium and chromium-driver, "
            "or point CHROME_BIN / CHROMEDRIVER at them, or retry with USE_WDM=1. "
            f"Original error: {type(exc).__name__}: {exc}"
        ) from exc

    context.browser.implicitly_wait(float(os.getenv("WAIT_SECONDS", "5")))
    context.browser.set_window_size(1400, 1000)


def after_all(context):
    """Shut down the browser if it was started."""
    browser = getattr(context, "browser", None)
    if browser:
        browser.quit()
