"""
Utility functions for webservice.

URL joining for client endpoints and User-Agent derivation from the
process environment.
"""

import getpass
import os
from dataclasses import dataclass
from typing import Mapping, Optional

try:
    import pwd
except ImportError:  # Windows
    pwd = None


HTTP_AGENT_PREFIX = "py-webservice/v0"
UNKNOWN_AGENT = "UNKNOWN"


def combine_url(base: str, endpoint: str) -> str:
    """
    Join ``base`` and ``endpoint`` with exactly one ``/`` between them.

    Examples:
        >>> combine_url("https://localhost", "")
        'https://localhost/'
        >>> combine_url("https://localhost/", "/")
        'https://localhost/'
        >>> combine_url("http://localhost/a", "b")
        'http://localhost/a/b'
    """
    if base.endswith("/"):
        if endpoint.startswith("/"):
            return base + endpoint[1:]
        return base + endpoint
    if endpoint.startswith("/"):
        return base + endpoint
    return base + "/" + endpoint


@dataclass(frozen=True)
class UserInfo:
    """Identity of the OS user running the process."""
    name: str = ""
    username: str = ""
    home_dir: str = ""


def current_user() -> Optional[UserInfo]:
    """Look up the OS user, None when the platform cannot tell."""
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        return None

    name = ""
    if pwd is not None:
        try:
            # GECOS: "Full Name,Room,Phone,..."
            name = pwd.getpwnam(username).pw_gecos.split(",")[0]
        except KeyError:
            name = ""

    home_dir = os.path.expanduser("~")
    if home_dir == "~":
        home_dir = ""

    return UserInfo(name=name, username=username, home_dir=home_dir)


def user_agent(
    environ: Optional[Mapping[str, str]] = None,
    user: Optional[UserInfo] = None,
    lookup_user: bool = True,
) -> str:
    """
    Build a User-Agent identifying the current process.

    Precedence:
        1. ``USER_AGENT`` -> ``py-webservice/v0/<USER_AGENT>``
        2. ``SYSTEM`` [+ ``COMPONENT``] -> ``py-webservice/v0/<SYSTEM>[/<COMPONENT>]``
        3. OS user display name, then username, then home directory
        4. ``UNKNOWN``

    Args:
        environ: Environment snapshot (defaults to ``os.environ``)
        user: OS identity; looked up with :func:`current_user` when omitted
        lookup_user: Set to False to skip the OS lookup when ``user`` is None

    Examples:
        >>> user_agent({"USER_AGENT": "billing"})
        'py-webservice/v0/billing'
        >>> user_agent({"SYSTEM": "shop", "COMPONENT": "cart"})
        'py-webservice/v0/shop/cart'
        >>> user_agent({}, lookup_user=False)
        'UNKNOWN'
    """
    if environ is None:
        environ = os.environ

    ua = environ.get("USER_AGENT", "")
    if ua:
        return f"{HTTP_AGENT_PREFIX}/{ua}"

    system = environ.get("SYSTEM", "")
    if system:
        component = environ.get("COMPONENT", "")
        if component:
            return f"{HTTP_AGENT_PREFIX}/{system}/{component}"
        return f"{HTTP_AGENT_PREFIX}/{system}"

    if user is None and lookup_user:
        user = current_user()
    if user is None:
        return UNKNOWN_AGENT

    for identity in (user.name, user.username, user.home_dir):
        if identity:
            return f"{HTTP_AGENT_PREFIX}/{identity}"

    return UNKNOWN_AGENT
