"""Step definitions for the Especiales admin UI.

All interactions are performed via the browser (Selenium) against the UI
at /ui. No direct API calls are made in these steps.
"""

from behave import given, when, then  # pylint: disable=no-name-in-module
from selenium.webdriver.common.by import By


@given("the Especiales UI is available")
def step_ui_is_available(context):
    """Navigate to the /ui page and ensure basic content is present."""
    context.browser.get(context.base_url + "/ui")
    title = context.browser.title or ""
    page = context.browser.page_source or ""
    assert "Administrar Especiales" in title or "Administrar Especiales" in page


@when('I press the "{button}" button')
def step_press_button(context, button):
    """Click a button or link by its `<name>-btn` id."""
    element_id = button.lower() + "-btn"
    context.browser.find_element(By.ID, element_id).click()


@then('the page title contains "{text}"')
def step_title_contains(context, text):
    """Assert that the document.title contains a specific substring."""
    assert text in (context.browser.title or "")
    # Also ensure our H1 is present for robustness
    h1 = context.browser.find_element(By.ID, "title")
    assert text in h1.text


@then('the "{field}" field is empty')
def step_field_is_empty(context, field):
    """Assert that a form input has no value."""
    element = context.browser.find_element(By.ID, field.lower())
    assert element.get_attribute("value") == ""
