"""Shared form plumbing for the JSON endpoints.

Flask-WTF reads JSON request bodies as form data, so the same ``FlaskForm``
validation used for HTML forms also validates API payloads. CSRF is enforced
globally by ``CSRFProtect`` (``X-CSRFToken`` header), so the per-form token
field is disabled.

JSON values are checked against the field type before processing: text
fields only take strings, integer fields take integers or numeric strings,
and ``null`` clears a field the same way an empty string does.
"""
from __future__ import annotations

from typing import Any, Dict, Optional as Maybe, Tuple

from flask import jsonify, request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import IntegerField, StringField
from wtforms.validators import Optional, StopValidation

BODY_NOT_OBJECT = "The request body must be a JSON object."


def json_object() -> Maybe[Dict[str, Any]]:
    """Return the JSON body when it is an object (or empty), else ``None``."""

    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


def _type_error(field_class: type, value: Any) -> Maybe[str]:
    if issubclass(field_class, StringField) and not isinstance(value, str):
        return "must be a string"
    if issubclass(field_class, IntegerField):
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            return "must be an integer"
    return None


class _Reject:
    def __init__(self, message: str) -> None:
        self.message = message

    def __call__(self, form, field) -> None:
        raise StopValidation(self.message)


class ApiForm(FlaskForm):
    class Meta:
        csrf = False

    # Text fields that also take a JSON number, stored as its string form.
    numeric_text_fields: Tuple[str, ...] = ()

    def __init__(self, *args: Any, partial: bool = False, **kwargs: Any) -> None:
        self.partial = partial
        self.body_error: Maybe[str] = None
        self.type_errors: Dict[str, str] = {}
        if not args and "formdata" not in kwargs and request.is_json:
            kwargs["formdata"] = self._json_formdata()
        super().__init__(*args, **kwargs)

    def _json_formdata(self) -> ImmutableMultiDict:
        # Malformed JSON raises BadRequest here, as Flask-WTF itself would.
        payload = request.get_json()
        if payload is None:
            return ImmutableMultiDict()
        if not isinstance(payload, dict):
            self.body_error = BODY_NOT_OBJECT
            return ImmutableMultiDict()

        field_classes = {name: unbound.field_class for name, unbound in self._unbound_fields}
        values = {}
        for name, value in payload.items():
            if name not in field_classes:
                continue
            if value is None:
                values[name] = ""
                continue
            if name in self.numeric_text_fields and isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            problem = _type_error(field_classes[name], value)
            if problem:
                self.type_errors[name] = problem
                continue
            values[name] = value
        return ImmutableMultiDict(values)

    def validate(self, extra_validators=None) -> bool:
        if self.body_error:
            self.form_errors.append(self.body_error)
            return False
        if self.partial:
            # Fields missing from a partial update keep their stored value.
            for field in self:
                if not field.raw_data:
                    field.validators = [Optional()]
        for name, problem in self.type_errors.items():
            field = self[name]
            field.validators = [_Reject(f"{field.label.text} {problem}.")]
        return super().validate(extra_validators=extra_validators)

    def submitted_data(self) -> Dict[str, Any]:
        """Return ``{name: data}`` for the fields present in the request."""

        return {name: field.data for name, field in self._fields.items() if field.raw_data}


def form_error_response(form: FlaskForm, status: int = 400):
    errors = {name: messages for name, messages in form.errors.items() if name is not None}
    messages = list(form.form_errors) + [error for field_errors in errors.values() for error in field_errors]
    message = messages[0] if messages else "The submitted data is invalid."
    return jsonify({"error": message, "errors": errors}), status
