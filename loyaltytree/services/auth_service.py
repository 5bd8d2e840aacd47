"""
Credential service.

Customers and retailers live in two tables but share one token namespace:
the token carries the account id and the account type, and the identity is
always re-read from the matching table when a token is verified.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Union

import bcrypt
import jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from loyaltytree.config import Settings
from loyaltytree.errors import AuthenticationFailed, DomainRuleViolation, ValidationFailed
from loyaltytree.models.customer import Customer
from loyaltytree.models.retailer import Retailer
from loyaltytree.time_utils import utcnow


logger = logging.getLogger(__name__)

CUSTOMER = "customer"
RETAILER = "retailer"

_ACCOUNT_MODELS = {CUSTOMER: Customer, RETAILER: Retailer}

# bcrypt only reads the first 72 bytes
MAX_PASSWORD_BYTES = 72
TOKEN_LIFETIME = timedelta(days=7)


@dataclass(frozen=True)
class Identity:
    kind: str
    account: Union[Customer, Retailer]

    @property
    def id(self):
        return self.account.id

    @property
    def is_customer(self) -> bool:
        return self.kind == CUSTOMER

    @property
    def role(self) -> str:
        # retailers carry no stored role; "retailer" is a label only
        if self.kind == RETAILER:
            return RETAILER
        return self.account.role

    def profile(self) -> dict:
        data = {
            "id": self.account.id,
            "email": self.account.email,
            "name": self.account.name,
            "role": self.role,
            "created_at": self.account.created_at,
        }
        if self.kind == CUSTOMER:
            data["points"] = self.account.points
        else:
            data["description"] = self.account.description
            data["logo"] = self.account.logo
        return data


# ============================================================
# PASSWORDS
# ============================================================
def hash_password(password: str) -> str:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValidationFailed(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        # never hashable, so it cannot match
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# ============================================================
# TOKENS
# ============================================================
def create_access_token(settings: Settings, *, account_id, account_type: str) -> str:
    payload = {
        "sub": str(account_id),
        "type": account_type,
        "exp": utcnow() + TOKEN_LIFETIME,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("expired token rejected")
        return None
    except jwt.InvalidTokenError:
        return None


def verify_token(db: Session, settings: Settings, token: str) -> Optional[Identity]:
    """
    Resolve a bearer token to the account it names.

    Never raises: a bad signature, an expired token, an unknown account type
    or a deleted account all give None.
    """
    payload = decode_access_token(settings, token)
    if not payload:
        return None

    model = _ACCOUNT_MODELS.get(payload.get("type"))
    if model is None:
        return None

    try:
        account = db.get(model, _parse_uuid(payload.get("sub")))
    except ValueError:
        return None

    if account is None:
        return None
    return Identity(kind=payload["type"], account=account)


def _parse_uuid(value):
    if not value:
        raise ValueError("missing subject")
    return uuid.UUID(str(value))


# ============================================================
# ACCOUNTS
# ============================================================
def _normalize_email(email: str) -> str:
    value = (email or "").strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValidationFailed("A valid email is required")
    return value


def email_in_use(db: Session, email: str, *, exclude: Optional[Identity] = None) -> bool:
    for kind, model in _ACCOUNT_MODELS.items():
        q = db.query(model.id).filter(func.lower(model.email) == email)
        if exclude is not None and exclude.kind == kind:
            q = q.filter(model.id != exclude.id)
        if q.first():
            return True
    return False


def register(
    db: Session,
    settings: Settings,
    *,
    email: str,
    password: str,
    name: Optional[str],
    account_type: str,
):
    email = _normalize_email(email)
    if account_type not in _ACCOUNT_MODELS:
        raise ValidationFailed("role must be customer or retailer")

    password_hash = hash_password(password)

    # both tables, whichever kind is being created
    if email_in_use(db, email):
        raise DomainRuleViolation("Email already registered", code="email_taken")

    display_name = (name or "").strip() or email.split("@", 1)[0]

    if account_type == CUSTOMER:
        account = Customer(email=email, password_hash=password_hash, name=display_name, points=0, role="user")
    else:
        account = Retailer(email=email, password_hash=password_hash, name=display_name)

    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info("account registered", extra={"account_id": str(account.id), "account_type": account_type})

    identity = Identity(kind=account_type, account=account)
    token = create_access_token(settings, account_id=account.id, account_type=account_type)
    return identity, token


def login(db: Session, settings: Settings, *, email: str, password: str, account_type: str):
    model = _ACCOUNT_MODELS.get(account_type)
    if model is None:
        raise ValidationFailed("role must be customer or retailer")

    account = (
        db.query(model)
        .filter(func.lower(model.email) == (email or "").strip().lower())
        .first()
    )
    if not account or not verify_password(password, account.password_hash):
        raise AuthenticationFailed("Invalid credentials", code="invalid_credentials")

    token = create_access_token(settings, account_id=account.id, account_type=account_type)
    return Identity(kind=account_type, account=account), token


def update_profile(db: Session, identity: Identity, *, name: Optional[str] = None, email: Optional[str] = None):
    account = identity.account

    if email:
        email = _normalize_email(email)
        if email != account.email and email_in_use(db, email, exclude=identity):
            raise DomainRuleViolation("Email already registered", code="email_taken")
        account.email = email

    if name and name.strip():
        account.name = name.strip()

    db.commit()
    db.refresh(account)
    return identity
