"""
Preflight validation for note tuning.

This script performs semantic validation before a note is applied:
- Validates all parameters are handled by a parameter kind
- Validates operators and the shape of kind specific values
- Reports recommendations that will fall back to a kind default as warnings
- Returns error if the note is invalid, allowing the caller to fail fast

Called synchronously before effectuation starts.
"""

from note_tuning.errors import UnknownParameterError
from note_tuning.limits import split_limit_name
from note_tuning.note_entries import split_entry
from note_tuning.operators import Operator, is_na
from note_tuning.parameter_registry import lookup, prefix_of, scoped_suffix
from note_tuning.service import KEEP_RUNNING


def _check_value(name, kind, metadata, value, errors, warnings):
    if kind == 'sysctl':
        if not value.split():
            errors.append(f"parameters.{name}: empty sysctl value")

    elif kind == 'block':
        if prefix_of(name) == 'NRREQ_' and not value.strip().isdigit():
            errors.append(f"parameters.{name}: queue depth must be a number, got '{value}'")
        elif not value.strip(', '):
            errors.append(f"parameters.{name}: no IO scheduler given")

    elif kind == 'limits':
        try:
            domain, limit_type, item = split_limit_name(name)
        except UnknownParameterError as e:
            errors.append(f"parameters.{name}: {e.message}")
            return
        fields = value.split()
        if len(fields) != 4:
            errors.append(f"parameters.{name}: expected '<domain> <type> <item> <value>', got '{value}'")
        elif fields[:3] != [domain, limit_type, item]:
            errors.append(f"parameters.{name}: line '{value}' does not match {domain} {limit_type} {item}")

    elif kind == 'service':
        if scoped_suffix(name) in KEEP_RUNNING and value != 'start':
            warnings.append(f"parameters.{name}: '{value}' ignored, {scoped_suffix(name)} is always started")
            return

    elif kind == 'memory':
        if not value.strip().isdigit():
            errors.append(f"parameters.{name}: must be a number, got '{value}'")

    elif kind == 'login':
        if not (value.strip().isdigit() or value.strip() == 'infinity'):
            errors.append(f"parameters.{name}: must be a number or 'infinity', got '{value}'")

    allowed = metadata.get('available_values')
    if allowed and value not in allowed:
        fallback = metadata.get('fallback', 'the current value')
        warnings.append(f"parameters.{name}: '{value}' not one of {', '.join(allowed)}, falls back to {fallback}")


def main(note=None):
    """
    Validate a note before it is applied.

    Args:
        note: Note dict with 'id' and 'parameters' (name -> value or
              {'value': ..., 'operator': ...})

    Returns:
        dict with result status and either success or error details
    """
    if not note:
        return {
            "result": "FAILURE",
            "error": "Missing note parameter"
        }

    errors = []
    warnings = []

    try:
        parameters = note.get('parameters', {})

        if not isinstance(parameters, dict):
            return {
                "result": "FAILURE",
                "error": "Preflight validation failed:\n  - parameters: must be a dict"
            }

        for name, entry in parameters.items():
            if isinstance(entry, dict) and 'value' not in entry:
                errors.append(f"parameters.{name}: missing 'value'")
                continue

            value, operator = split_entry(entry)

            try:
                Operator.parse(operator)
            except ValueError as e:
                errors.append(f"parameters.{name}: {e}")
                continue

            resolved = lookup(name)
            if resolved is None:
                errors.append(f"parameters.{name}: unsupported parameter")
                continue
            kind, metadata = resolved

            # an undeterminable recommendation keeps the current value
            if is_na(value):
                continue

            _check_value(name, kind, metadata, value, errors, warnings)

        if errors:
            error_msg = "Preflight validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
            return {
                "result": "FAILURE",
                "error": error_msg
            }

        return {
            "result": "SUCCESS",
            "data": {
                "message": "Preflight validation passed",
                "warnings": warnings
            }
        }

    except Exception as e:
        return {
            "result": "FAILURE",
            "error": f"Preflight validation error: {str(e)}"
        }
