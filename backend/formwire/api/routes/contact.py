"""Contact Page: a server-rendered form running the full redirect-and-replay cycle.

Invariants:
    - POST with registrations -> 303 back to the same URL, no body
    - The following GET renders submitted values and error messages once
    - Every control is registered during render, so the next POST validates
      exactly what the user saw

Design Decisions:
    - Markup is assembled inline; templating is outside formwire's scope and
      the page only needs the attribute strings the engine produces
"""

import html
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from formwire.api.dependencies import get_form_engine, redirect_response
from formwire.core.form_engine import FormEngine
from formwire.core.render_attributes import schema_script_tag

logger = logging.getLogger(__name__)
router = APIRouter(tags=["pages"])

CONTACT_FIELDS: tuple[tuple[str, str, dict], ...] = (
    ("name", "Name", {
        "required": True, "minLength": 2, "maxLength": 80,
        "placeholder": "Your name", "autocomplete": "name",
    }),
    ("email", "Email", {"required": True, "email": True}),
    ("age", "Age", {"number": True, "min": 18, "max": 120}),
    ("website", "Website", {"url": True, "placeholder": "https://"}),
    ("message", "Message", {
        "required": {"value": True, "message": "Please write a message."},
        "maxLength": 500,
    }),
)


def _field_row(form: FormEngine, name: str, label: str, rules: dict) -> str:
    attributes = form.register(name, rules)
    message = form.errors.get(name, "") if form.validated else ""
    return (
        f"<div class='field'>"
        f"<label for='fh-{html.escape(name)}'>{html.escape(label)}</label>"
        f"<input {attributes} />"
        f"<span class='error' {form.get_errors(name)}>{html.escape(message)}</span>"
        f"</div>"
    )


def render_contact_page(form: FormEngine) -> str:
    data = form.get_data()
    notice = ""
    if form.validate():
        notice = (
            f"<p class='notice'>Thanks {html.escape(data.name or '')}, "
            f"your message was received.</p>"
        )
    rows = "".join(
        _field_row(form, name, label, rules) for name, label, rules in CONTACT_FIELDS
    )
    return (
        "<!DOCTYPE html><html lang='en'><head><meta charset='UTF-8'>"
        "<title>Contact</title></head><body>"
        f"{notice}"
        f"<form method='post' action='' novalidate>{rows}"
        "<button type='submit'>Send</button></form>"
        f"<p>Preview: <strong {form.watch('name')}>"
        f"{html.escape(str(data.name or ''))}</strong></p>"
        f"{schema_script_tag()}"
        "<script src='/static/form_handler.js' defer></script>"
        "</body></html>"
    )


@router.api_route("/contact", methods=["GET", "POST"], response_class=HTMLResponse)
async def contact_page(form: FormEngine = Depends(get_form_engine)):
    if form.redirect is not None:
        return redirect_response(form.redirect)
    return HTMLResponse(render_contact_page(form))
