import logging
import os

import uvicorn

from matchplay.settings import load_settings

logger = logging.getLogger(__name__)
APP_MODULE = "matchplay.main:app"
DEFAULT_PORT = 8000
OPTIONAL_TLS_ENV = {
    "SSL_CA_FILE": "ssl_ca_certs",
    "SSL_KEY_PASSWORD": "ssl_keyfile_password",
}


def _listen_port() -> int:
    raw = os.getenv("APP_PORT") or os.getenv("PORT")
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        logger.warning("Port %r is not an integer; using %s", raw, DEFAULT_PORT)
        return DEFAULT_PORT


def _tls_options() -> dict[str, str]:
    cert = os.getenv("SSL_CERT_FILE")
    key = os.getenv("SSL_KEY_FILE")
    if not (cert and key):
        if cert or key:
            logger.warning("TLS needs both SSL_CERT_FILE and SSL_KEY_FILE; serving plain HTTP")
        return {}
    options = {"ssl_certfile": cert, "ssl_keyfile": key}
    for env_key, option in OPTIONAL_TLS_ENV.items():
        value = os.getenv(env_key)
        if value:
            options[option] = value
    return options


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    host = os.getenv("APP_HOST", "0.0.0.0")
    port = _listen_port()
    log_level = os.getenv("UVICORN_LOG_LEVEL", settings.log_level.lower())
    tls_options = _tls_options()
    logger.info("Serving match-play scoring on %s:%s (%s)", host, port, "https" if tls_options else "http")
    uvicorn.run(
        APP_MODULE,
        host=host,
        port=port,
        log_level=log_level,
        **tls_options,
    )


if __name__ == "__main__":
    main()
