"""
Request decoding and validation utilities

Inbound bodies arrive as JSON, as base64-encoded JSON, or wrapped in an
API Gateway style envelope ({"httpMethod": ..., "body": ...}). Decoding runs an
ordered list of attempts, each returning a tagged ParsedBody.
"""
import re
import base64
import binascii
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .constants import ImageConstants
from .exceptions import ValidationError


_BASE64_PATTERN = re.compile(r'^[A-Za-z0-9+/]*={0,2}$')


class BodyParseStatus(str, Enum):
    PARSED = 'PARSED'
    NOT_JSON = 'NOT_JSON'
    NOT_BASE64 = 'NOT_BASE64'


@dataclass(frozen=True)
class ParsedBody:
    status: BodyParseStatus
    data: Dict[str, Any] = field(default_factory=dict)
    detail: str = ''

    @property
    def ok(self) -> bool:
        return self.status is BodyParseStatus.PARSED


def _parse_json(text: str) -> ParsedBody:
    stripped = text.strip()
    if not stripped.startswith('{'):
        return ParsedBody(BodyParseStatus.NOT_JSON, detail='body is not a JSON object')
    try:
        data = json.loads(stripped)
    except ValueError as e:
        return ParsedBody(BodyParseStatus.NOT_JSON, detail=str(e))
    if not isinstance(data, dict):
        return ParsedBody(BodyParseStatus.NOT_JSON, detail='body is not a JSON object')
    return ParsedBody(BodyParseStatus.PARSED, data)


def _parse_base64_json(text: str) -> ParsedBody:
    compact = ''.join(text.split())
    if not compact or len(compact) % 4 or not _BASE64_PATTERN.match(compact):
        return ParsedBody(BodyParseStatus.NOT_BASE64, detail='body is not base64')
    try:
        decoded = base64.b64decode(compact, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as e:
        return ParsedBody(BodyParseStatus.NOT_BASE64, detail=str(e))
    return _parse_json(decoded)


def decode_request_body(body: Any, is_base64_encoded: bool = False) -> ParsedBody:
    """
    Decode a request body into a dict

    Args:
        body: Raw body (str, dict or None)
        is_base64_encoded: API Gateway isBase64Encoded flag; tries base64 first when set

    Returns:
        ParsedBody; on failure the status of the first attempt is reported
    """
    if body is None:
        return ParsedBody(BodyParseStatus.PARSED, {})
    if isinstance(body, dict):
        return unwrap_envelope(ParsedBody(BodyParseStatus.PARSED, body))
    if not isinstance(body, str):
        return ParsedBody(BodyParseStatus.NOT_JSON, detail=f'unsupported body type {type(body).__name__}')
    if not body.strip():
        return ParsedBody(BodyParseStatus.PARSED, {})

    attempts = [_parse_base64_json, _parse_json] if is_base64_encoded else [_parse_json, _parse_base64_json]

    first_failure = None
    for attempt in attempts:
        result = attempt(body)
        if result.ok:
            return unwrap_envelope(result)
        if first_failure is None:
            first_failure = result
    return first_failure


def unwrap_envelope(parsed: ParsedBody) -> ParsedBody:
    """Replace an {httpMethod, body} envelope with its inner body"""
    data = parsed.data
    if not parsed.ok or 'body' not in data or 'httpMethod' not in data:
        return parsed

    inner = data['body']
    if isinstance(inner, dict):
        return ParsedBody(BodyParseStatus.PARSED, inner)
    if not inner or (isinstance(inner, str) and inner.strip() in ('', '{}')):
        return ParsedBody(BodyParseStatus.PARSED, {})
    return decode_request_body(inner)


def parse_event(event: Any) -> ParsedBody:
    """
    Extract the request body from a Lambda event

    Handles API Gateway proxy events, orchestrator envelopes and bare
    direct-invocation payloads.
    """
    if not isinstance(event, dict):
        return ParsedBody(BodyParseStatus.NOT_JSON, detail='event is not an object')
    if 'body' in event:
        return decode_request_body(event['body'], bool(event.get('isBase64Encoded')))
    return ParsedBody(BodyParseStatus.PARSED, dict(event))


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> List[str]:
    """
    Validate that all required fields are present in the data.

    Args:
        data: Dictionary containing the data to validate
        required_fields: List of required field names

    Returns:
        List of missing field names (empty if all fields are present)
    """
    if not isinstance(data, dict):
        return required_fields

    missing_fields = []
    for field_name in required_fields:
        if field_name not in data or data[field_name] is None or data[field_name] == "":
            missing_fields.append(field_name)

    return missing_fields


def optional_string(data: Dict[str, Any], key: str) -> Optional[str]:
    """Return a stripped string field or None when absent or blank"""
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def decode_base64_content(content: str) -> bytes:
    """
    Decode base64 image content, with or without a data URL prefix

    Raises:
        ValidationError: If content is empty or not valid base64
    """
    if not content:
        raise ValidationError('Image content is empty', field='content')

    if content.startswith('data:') and ',' in content:
        content = content.split(',', 1)[1]

    try:
        return base64.b64decode(''.join(content.split()), validate=True)
    except binascii.Error as e:
        raise ValidationError(f'Invalid base64 content: {e}', field='content')


def infer_image_type(key: str) -> str:
    """
    Infer the image type from a key's extension

    Raises:
        ValidationError: If the extension is missing or not a supported image type
    """
    match = re.match(r'.*\.([^.]*)$', key or '')
    if not match:
        raise ValidationError(f'Unable to infer image type for key {key}', field='key')

    image_type = match.group(1).lower()
    if image_type not in ImageConstants.SUPPORTED_TYPES:
        raise ValidationError(f'Skipping non-image {key}', field='key')
    return image_type


def resized_key(key: str) -> str:
    """Key of the thumbnail generated for an original"""
    return f'{ImageConstants.RESIZED_KEY_PREFIX}{key}'
