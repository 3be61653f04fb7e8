import getpass
import os
from typing import Optional

import keyring
import keyring.errors

# Constants
KEYRING_SERVICE = "ledgerview"
DEFAULT_PROFILE = "default"
TOKEN_ENV_VAR = "LEDGERVIEW_API_TOKEN"


def _service_name(profile: str) -> str:
    return f"{KEYRING_SERVICE}.{profile}"


def save_token(token: str, profile: str = DEFAULT_PROFILE) -> None:
    """Save an API token to keyring."""
    keyring.set_password(_service_name(profile), "token", token)


def get_token(profile: str = DEFAULT_PROFILE) -> Optional[str]:
    """Return the API token, preferring the environment over keyring."""
    env_token = os.getenv(TOKEN_ENV_VAR)
    if env_token:
        return env_token
    return keyring.get_password(_service_name(profile), "token")


def login(
    token: Optional[str] = None, profile: str = DEFAULT_PROFILE, verbose: bool = False
) -> bool:
    """
    Store a bearer token for later commands.
    Prompts for the token when it is not given. Returns False if none was entered.

    Args:
        token: Bearer token issued by the backend.
        profile: Name to store the token under.
        verbose: If True, print status messages.
    """
    if not token:
        token = getpass.getpass("API token: ").strip()
    if not token:
        print("✗ No token entered.")
        return False

    save_token(token, profile)
    if verbose:
        print(f"✓ Token saved for profile '{profile}'")
    return True


def logout(profile: str = DEFAULT_PROFILE) -> None:
    """
    Clear the stored token of a profile.

    Args:
        profile: Profile to clear.
    """
    try:
        keyring.delete_password(_service_name(profile), "token")
        print(f"✓ Cleared token for profile '{profile}'")
    except keyring.errors.PasswordDeleteError:
        print(f"No token found for profile '{profile}'")
