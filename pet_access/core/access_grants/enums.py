"""Grant lifecycle enums."""

from enum import Enum


class GrantStatus(str, Enum):
    """Lifecycle status of an access grant.

    INVITED -> ACTIVE via the grantee's accept, INVITED/ACTIVE -> REVOKED via
    the owner's revoke. REVOKED is terminal.
    """

    INVITED = "invited"
    ACTIVE = "active"
    REVOKED = "revoked"
