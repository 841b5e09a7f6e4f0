"""Security utilities for one-time passwords."""
import hashlib
import hmac
import secrets

def generate_otp() -> str:
    """Generate a uniformly random 6-digit code in 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def hash_otp(otp: str, app_id: str, email: str, secret: str) -> str:
    """
    HMAC-SHA256 digest of a code bound to its app and email.

    The digest, not the code, is what gets stored, so a leaked table cannot
    be replayed and a code issued for one app never matches another.
    """
    message = f"{otp.strip()}|{app_id}|{email.strip().lower()}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
