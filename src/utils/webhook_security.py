import hmac
from typing import Optional


def verify_shared_secret(provided: Optional[str], expected: Optional[str]) -> bool:
    """
    Constant-time comparison of a webhook's shared-secret header.
    No configured secret means verification is disabled.
    """
    if not expected:
        return True
    if not provided:
        return False
    return hmac.compare_digest(provided.strip().encode("utf-8"), expected.encode("utf-8"))
