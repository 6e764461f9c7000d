"""Lightweight payload validation for Socket.IO events and JSON request bodies.

Minimal schema-like checking with clear, consistent error responses. Not a
general JSON Schema implementation.

- Return (ok, value_or_error) tuples; caller decides whether to emit an error
  event or build a 400 response.

Schema Mini-Language (Python dict):
{
  'field_name': ('type', required: bool, extras: dict)
}
Supported types: 'str', 'int', 'dict'
Extras:
  max_len, min_len (str); min, max (int)

Example:
 schema = {
   'session_id': ('str', True, {'max_len': 64})
 }
 ok, data_or_err = validate(data, schema)

If invalid: (False, {'field': 'session_id', 'error': 'too long', 'code': 'max_len'})
If valid: (True, normalized_data)
"""
from __future__ import annotations
from typing import Any, Dict, Tuple

PRIMITIVES = {
    'str': str,
    'int': int,
    'dict': dict,
}


def _fail(field: str, message: str, code: str) -> Tuple[bool, Dict[str, Any]]:
    return False, {'field': field, 'error': message, 'code': code}


def validate(payload: Any, schema: Dict[str, tuple]) -> Tuple[bool, Dict[str, Any]]:
    if not isinstance(payload, dict):
        return _fail('__root__', 'payload must be an object', 'type')
    out = {}
    for name, spec in schema.items():
        type_name, required = spec[0], spec[1]
        extras = spec[2] if len(spec) > 2 else {}
        if type_name not in PRIMITIVES:
            return _fail('__schema__', f'unsupported type {type_name}', 'schema')
        if name not in payload or payload[name] is None:
            if required:
                return _fail(name, 'missing required field', 'required')
            continue
        value = payload[name]
        py_type = PRIMITIVES[type_name]
        # bool is an int subclass; never accept it as a count
        if not isinstance(value, py_type) or (type_name == 'int' and isinstance(value, bool)):
            return _fail(name, f'expected {type_name}', 'type')
        if type_name == 'str':
            s = value.strip()
            if len(s) == 0:
                return _fail(name, 'must not be empty', 'empty')
            if 'max_len' in extras and len(s) > extras['max_len']:
                return _fail(name, 'too long', 'max_len')
            if 'min_len' in extras and len(s) < extras['min_len']:
                return _fail(name, 'too short', 'min_len')
            out[name] = s
        elif type_name == 'int':
            if 'min' in extras and value < extras['min']:
                return _fail(name, f"must be >= {extras['min']}", 'min')
            if 'max' in extras and value > extras['max']:
                return _fail(name, f"must be <= {extras['max']}", 'max')
            out[name] = value
        elif type_name == 'dict':
            out[name] = value
    return True, out


# Predefined schemas used by handlers
SESSION_ID = ('str', True, {'min_len': 1, 'max_len': 64})

CREATE_SESSION = {
    'seed': ('str', False, {'min_len': 1, 'max_len': 128}),
    'config': ('dict', False),
}
STEP_SESSION = {
    'count': ('int', False, {'min': 1}),
}
DESIGNER_PLAY = {
    'session_id': SESSION_ID,
    'steps': ('int', False, {'min': 1}),
}
DESIGNER_OVERLAY = {
    'session_id': SESSION_ID,
}
