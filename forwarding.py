import enum
import logging
from collections import namedtuple

import requests
from urllib3.exceptions import LocationValueError

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http://", "https://")
DEFAULT_SCHEME = "https://"
DEFAULT_CONTENT_TYPE = "application/json"

UpstreamResponse = namedtuple("UpstreamResponse", ["content", "content_type"])


class ProxyError(Exception):
    """Base class for every failure that ends a proxied request early."""

    status = 500
    message = ""

    def __init__(self, detail=None):
        self.detail = detail
        super().__init__(self.body)

    @property
    def body(self):
        return self.message


class BadRequest(ProxyError):
    status = 400


class MissingURL(BadRequest):
    message = "No URL specified"


class UnsupportedProtocol(BadRequest):
    message = "Unsupported protocol. Only HTTP and HTTPS are allowed."


class InvalidDomain(BadRequest):
    message = "Invalid domain name"


class MethodNotAllowed(ProxyError):
    status = 405


class GatewayError(ProxyError):
    status = 502

    @property
    def body(self):
        return f"{self.message}: {self.detail}"


class UpstreamUnreachable(GatewayError):
    message = "Failed to forward request"


class UpstreamBodyReadError(GatewayError):
    message = "Failed to read response body"


class Method(enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def from_request(cls, name):
        try:
            return cls(name)
        except ValueError:
            logger.warning("Bad request: not valid HTTP method specified")
            raise MethodNotAllowed(name) from None


def validate_target(url):
    """
    Turn the captured path segment into an absolute http(s) URL.

    Bare hosts get ``https://`` prepended. Anything carrying another scheme,
    or a host without a dot, is rejected before any network I/O.
    """
    if not url:
        logger.warning("Bad request: no url specified")
        raise MissingURL()

    has_scheme = url.startswith(SUPPORTED_SCHEMES)
    if "://" in url and not has_scheme:
        logger.warning("Bad request: unsupported protocol")
        raise UnsupportedProtocol(url)

    domain = url.rsplit("://", 1)[-1]
    if "." not in domain:
        logger.warning("Bad request: invalid domain - %s", url)
        raise InvalidDomain(url)

    if has_scheme:
        return url
    return DEFAULT_SCHEME + url


def is_valid_header_value(value):
    # visible ASCII plus tab
    return all(c == "\t" or " " <= c <= "~" for c in value)


def content_type_of(upstream):
    value = upstream.headers.get("Content-Type")
    if value is None or not is_valid_header_value(value):
        return DEFAULT_CONTENT_TYPE
    return value


def forward(url, method, body, timeout=None):
    """
    Send one request to ``url`` and buffer the whole reply.

    The upstream status code is dropped; only the body and the Content-Type
    survive. Nothing is retried.
    """
    try:
        upstream = requests.request(
            method=method.value,
            url=url,
            data=body,
            stream=True,
            timeout=timeout
        )
    except (requests.RequestException, LocationValueError) as e:
        logger.warning("Failed to forward request to %s: %s", url, e)
        raise UpstreamUnreachable(e) from e

    try:
        content = upstream.content
    except requests.RequestException as e:
        logger.warning("Failed to read response body: %s", e)
        raise UpstreamBodyReadError(e) from e
    finally:
        upstream.close()

    return UpstreamResponse(content, content_type_of(upstream))
