import codecs
from dataclasses import dataclass
import json
import logging
from typing import Any, Callable, Optional

from .model import Blob, RawResponse, ResponseType


logger = logging.getLogger(__name__)

JsonHook = Callable[[Any], Any]


@dataclass
class ParsedBody:
    value: Any
    kind: ResponseType


def response_type_for(content_type: str) -> ResponseType:
    """
    Pick how to parse a body from its content type.

    Anything that is neither text nor JSON is treated as binary.
    """
    mime_type = content_type.split(';', 1)[0].strip().lower()
    if 'json' in mime_type:
        return ResponseType.JSON
    if mime_type.startswith('text/'):
        return ResponseType.TEXT
    return ResponseType.BLOB


def parse_response(response: RawResponse,
                   response_type: Optional[ResponseType] = None,
                   parse_json: Optional[JsonHook] = None) -> ParsedBody:
    """
    Parse the body of `response`.

    @param response
      The response to parse. Failure statuses are parsed the same way as successes.
    @param response_type
      Overrides the type implied by the response's content type.
    @param parse_json
      Applied to every decoded JSON value before it is returned.
    @return
      The parsed value and the kind of parsing that produced it.
    @throws ValueError
      If the body is not valid JSON but has to be parsed as JSON.
    """
    content_type = response.headers.get('Content-Type') or 'application/octet-stream'
    kind = response_type or response_type_for(content_type)
    logger.info('Parsing {} byte(s) of {} as {}'.format(len(response.body), content_type, kind.value))

    if kind is ResponseType.BLOB:
        return ParsedBody(Blob(content_type=content_type, data=response.body), kind)

    text = response.body.decode(_charset(content_type))
    if kind is ResponseType.TEXT:
        return ParsedBody(text, kind)

    value = json.loads(text) if text.strip() else None
    if parse_json is not None:
        value = parse_json(value)
    return ParsedBody(value, kind)


def _charset(content_type: str) -> str:
    for parameter in content_type.split(';')[1:]:
        name, _, value = parameter.partition('=')
        charset = value.strip().strip('"')
        if name.strip().lower() != 'charset' or not charset:
            continue
        try:
            return codecs.lookup(charset).name
        except LookupError:
            logger.warning('Unknown charset {} in content type {}. Decoding as utf-8.'.format(charset, content_type))
            break
    return 'utf-8'
