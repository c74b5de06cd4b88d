import logging
import os
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def service_base_url(fqdn: Optional[str] = None) -> str:
    """Return the HTTPS base URL of the token service.

    Raises
    ------
    RuntimeError
        If neither ``fqdn`` nor ``BLOCKCHAIN_BASE_FQDN`` is set.
    """
    fqdn = fqdn or os.environ.get("BLOCKCHAIN_BASE_FQDN")
    if not fqdn:
        raise RuntimeError("Environment variable 'BLOCKCHAIN_BASE_FQDN' is not set")
    return f"https://{fqdn}".rstrip("/")


def open_session(fqdn: Optional[str] = None) -> tuple[requests.Session, str]:
    """Open a requests session to the token service and fetch its CSRF token.

    Returns
    -------
    tuple[requests.Session, str]
        The initialized session and CSRF token string.

    Raises
    ------
    RuntimeError
        If the base URL is not configured, the server returns no CSRF cookie,
        or the request itself fails. Underlying errors are chained.
    """
    url = service_base_url(fqdn)

    session = requests.Session()
    try:
        response = session.get(url)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.critical("Error occurred while starting session: %s", e)
        raise RuntimeError(f"Failed to establish session: {e}") from e

    csrf_token = response.cookies.get("csrftoken")
    if not csrf_token:
        raise RuntimeError("Server did not return a CSRF token")
    # Do not log the CSRF token value
    logger.debug("CSRF token acquired")
    return session, csrf_token


def get_jwt_token(session: requests.Session, fqdn: Optional[str] = None) -> str:
    """Obtain a JWT access token using the custody administrator credentials.

    Raises
    ------
    RuntimeError
        If the base URL is not configured.
    requests.HTTPError
        If the login request fails.
    KeyError
        If the response payload does not include an ``"access"`` field.
    """
    credential = {
        "username": os.environ.get("BLOCKCHAIN_ADMIN_USERNAME"),
        "password": os.environ.get("BLOCKCHAIN_ADMIN_PASSWORD"),
    }
    # Never log raw credentials
    logger.debug("Attempting JWT login with configured admin username")

    url = service_base_url(fqdn) + "/api/v1/auth/jwt-token"
    response = session.post(url, json=credential)
    response.raise_for_status()
    return response.json()["access"]
