import logging
from urllib.parse import quote

from flask import Flask, Blueprint, Response, current_app, request

from forwarding import Method, ProxyError, forward, validate_target
from settings import Settings, configure_logging

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "3600",
}

# Everything a browser may send reaches the view so the allowlist in
# Method decides, not the router.
ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]

# Characters left as sent; everything else in the raw query is percent-encoded.
QUERY_SAFE = "&=+%;/?:@,$!*'()~"

proxy = Blueprint("proxy", __name__)


def build_response(upstream):
    return Response(
        upstream.content,
        status=200,
        headers=CORS_HEADERS,
        content_type=upstream.content_type
    )


def error_response(error):
    return Response(error.body, status=error.status, mimetype="text/plain")


def requested_target(url):
    if url is None:
        return None
    query = quote(request.query_string, safe=QUERY_SAFE)
    if query:
        url = f"{url}?{query}"
    return url


@proxy.route('/', defaults={'url': None}, methods=ROUTED_METHODS,
             provide_automatic_options=False)
@proxy.route('/<path:url>', methods=ROUTED_METHODS,
             provide_automatic_options=False, merge_slashes=False)
def cors_proxy(url):
    settings = current_app.config["PROXY_SETTINGS"]

    try:
        method = Method.from_request(request.method)
        target = validate_target(requested_target(url))

        logger.info("Forwarding request to %s", target)
        upstream = forward(
            target,
            method,
            request.get_data(),
            timeout=settings.upstream_timeout
        )
    except ProxyError as e:
        return error_response(e)

    return build_response(upstream)


def create_app(settings=None):
    if settings is None:
        settings = Settings.from_env()

    app = Flask(__name__)
    app.url_map.merge_slashes = False
    app.config["PROXY_SETTINGS"] = settings
    app.register_blueprint(proxy)
    return app


def main():
    settings = Settings.from_env()
    configure_logging(settings.logging_enabled)

    app = create_app(settings)
    app.run(host=settings.address, port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
