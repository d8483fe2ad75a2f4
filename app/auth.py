import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .models import Therapist, User
from .shared.errors import is_unique_violation

logger = logging.getLogger(__name__)

security = HTTPBearer()

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys():
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys:
        logger.debug("✅ Using cached Google public keys")
        return _cached_keys

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    missing = 4 - len(segment) % 4
    return base64.urlsafe_b64decode(segment + ("=" * missing if missing != 4 else ""))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token, including its RS256 signature.

    The signing certificate is looked up by the header's ``kid`` among
    Google's published keys; audience, issuer and expiry are then checked
    against the configured Firebase project.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    parts = token.split(".")
    if len(parts) != 3:
        logger.error("❌ Invalid token format: wrong number of parts")
        raise HTTPException(status_code=401, detail="Invalid token format")

    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
    except ValueError as e:
        logger.error(f"❌ Failed to decode token header: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token header") from e

    kid = header.get("kid")
    alg = header.get("alg")

    if alg != "RS256":
        logger.error(f"❌ Invalid token algorithm: {alg}")
        raise HTTPException(status_code=401, detail="Invalid token algorithm")

    if not kid:
        logger.error("❌ Token missing key ID")
        raise HTTPException(status_code=401, detail="Token missing key ID")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, invalidating cache and retrying")
        global _cached_keys
        _cached_keys = None
        public_keys = await get_google_public_keys()
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after retry")
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())
    public_key = cert.public_key()

    try:
        signature = _b64decode(signature_b64)
        public_key.verify(
            signature, f"{header_b64}.{payload_b64}".encode(), padding.PKCS1v15(), hashes.SHA256()
        )
        logger.debug("✅ Token signature verified successfully")
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    try:
        decoded_payload = json.loads(_b64decode(payload_b64))
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token payload") from e

    if decoded_payload.get("aud") != FIREBASE_PROJECT_ID:
        logger.error("❌ Token audience mismatch")
        raise HTTPException(status_code=401, detail="Invalid token audience")

    if decoded_payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        logger.error("❌ Token issuer mismatch")
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    exp = decoded_payload.get("exp", 0)
    current_time = time.time()
    if exp < current_time:
        time_expired = int(current_time - exp)
        if time_expired > 60:
            logger.info(f"ℹ️ Token expired {time_expired}s ago for {decoded_payload.get('email')}")
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )

    # 60 seconds of clock skew allowed
    if decoded_payload.get("iat", 0) > current_time + 60:
        logger.warning("⚠️ Token issued in the future")
        raise HTTPException(status_code=401, detail="Invalid token")

    if "auth_time" not in decoded_payload:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    logger.debug(f"✅ Token cryptographically verified for user: {decoded_payload.get('email')}")
    return decoded_payload


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from Firebase token, creating the account on first sign-in"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    decoded_token = await verify_firebase_token(credentials.credentials)

    # Firebase ID tokens use 'sub' as the user ID claim
    firebase_uid = decoded_token.get("sub") or decoded_token.get("user_id")
    email = decoded_token.get("email")
    name = decoded_token.get("name", "")

    if not firebase_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(decoded_token.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.firebase_uid == firebase_uid).first()
    if user:
        logger.debug(f"✅ User authenticated: {user.email}")
        return user

    # Same email signed in through a different provider
    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(
                f"🔄 Migrating user {email} from Firebase UID {existing_user.firebase_uid} to {firebase_uid}"
            )
            existing_user.firebase_uid = firebase_uid
            if name and not existing_user.full_name:
                existing_user.full_name = name
            try:
                db.commit()
                db.refresh(existing_user)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"❌ Failed to migrate user: {str(e)}")
                raise HTTPException(
                    status_code=500, detail="Failed to update user authentication method"
                ) from e
            return existing_user

    logger.info(f"🆕 Creating new user: {email}")
    user = User(firebase_uid=firebase_uid, email=email or "", full_name=name, role="client")
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"✅ New user created: {user.email}")
    except SQLAlchemyError as e:
        db.rollback()
        if is_unique_violation(e):
            logger.error(f"❌ Email {email} was taken by another account (race condition)")
            raise HTTPException(
                status_code=409,
                detail="This email is already registered. Please sign in with your existing account.",
            ) from e
        raise
    return user


async def get_current_therapist(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Therapist:
    """
    Get the therapist profile of the current user.
    Use this dependency for every therapist-only route.
    """
    therapist = db.query(Therapist).filter(Therapist.user_id == user.id).first()
    if not therapist:
        logger.warning(f"⚠️ User {user.email} attempted to access a therapist route without a profile")
        raise HTTPException(status_code=403, detail="Therapist profile required")
    return therapist
