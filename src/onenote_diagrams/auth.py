"""Shared authentication for Microsoft Graph.

Uses DeviceCodeCredential with a persistent token cache and a saved
AuthenticationRecord so diagram publishes can authenticate silently.
"""

import logging
import sys

from azure.core.exceptions import ClientAuthenticationError
from azure.identity import AuthenticationRecord, DeviceCodeCredential, TokenCachePersistenceOptions
from msgraph import GraphServiceClient

from . import config

log = logging.getLogger(__name__)

_AUTH_RECORD_PATH = config.AUTH_DIR / "auth_record.json"


def _load_auth_record() -> AuthenticationRecord | None:
    """Load a previously saved AuthenticationRecord, if any."""
    if not _AUTH_RECORD_PATH.exists():
        return None
    try:
        return AuthenticationRecord.deserialize(_AUTH_RECORD_PATH.read_text())
    except (OSError, ValueError) as exc:
        log.warning("Ignoring unreadable auth record %s: %s", _AUTH_RECORD_PATH, exc)
        return None


def _save_auth_record(record: AuthenticationRecord) -> None:
    config.AUTH_DIR.mkdir(parents=True, exist_ok=True)
    _AUTH_RECORD_PATH.write_text(record.serialize())


def _make_credential(
    *,
    disable_automatic_authentication: bool = False,
    prompt_callback=None,
) -> DeviceCodeCredential:
    """Build a DeviceCodeCredential with token cache and optional saved record."""
    kwargs: dict = {
        "client_id": config.CLIENT_ID,
        "tenant_id": config.TENANT_ID,
        "cache_persistence_options": TokenCachePersistenceOptions(name=config.TOKEN_CACHE_NAME),
        "disable_automatic_authentication": disable_automatic_authentication,
    }
    auth_record = _load_auth_record()
    if auth_record:
        kwargs["authentication_record"] = auth_record
    if prompt_callback is not None:
        kwargs["prompt_callback"] = prompt_callback

    return DeviceCodeCredential(**kwargs)


def _print_device_code(verification_uri: str, user_code: str, expires_on) -> None:
    print(
        f"\nTo sign in, open: {verification_uri}\n"
        f"Enter the code: {user_code}\n",
        file=sys.stderr,
    )


def authenticate() -> AuthenticationRecord:
    """Run the device code flow interactively and persist the result.

    The device code prompt goes to stderr so stdout stays machine-readable.
    """
    config.validate()
    credential = _make_credential(prompt_callback=_print_device_code)
    record = credential.authenticate(scopes=config.SCOPES)
    _save_auth_record(record)
    log.info("Authenticated as %s", record.username)
    return record


def check_auth_status() -> dict:
    """Check whether we can authenticate silently."""
    auth_record = _load_auth_record()
    if not auth_record:
        return {"authenticated": False, "reason": "No saved authentication record. Run auth_login.py first."}

    try:
        credential = _make_credential(disable_automatic_authentication=True)
        credential.get_token(*config.SCOPES)
    except ClientAuthenticationError as exc:
        return {
            "authenticated": False,
            "reason": f"Token expired or invalid: {exc}. Run auth_login.py to re-authenticate.",
            "username": auth_record.username,
        }
    return {
        "authenticated": True,
        "username": auth_record.username,
        "tenant_id": auth_record.tenant_id,
        "authority": auth_record.authority,
    }


def get_access_token() -> str:
    """Return a bearer token, prompting with the device code flow if needed."""
    config.validate()
    return _make_credential(prompt_callback=_print_device_code).get_token(*config.SCOPES).token


def get_headers() -> dict[str, str]:
    """Authorization header for raw Graph requests."""
    return {"Authorization": f"Bearer {get_access_token()}"}


def get_graph_client() -> GraphServiceClient:
    """Get an authenticated GraphServiceClient for typed reads."""
    config.validate()
    credential = _make_credential(prompt_callback=_print_device_code)
    return GraphServiceClient(credentials=credential, scopes=config.SCOPES)

