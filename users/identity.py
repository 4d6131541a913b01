# users/identity.py
"""
Identity resolution for IIIT and guest accounts.

IIIT accounts own their email outright, so resolving them is a direct lookup.
Guest accounts may share an email; the password tells them apart. Resolving a
guest therefore walks every account under the email and returns the first one
whose stored hash matches. There is no index that short-circuits this, and k
(accounts per email) is expected to stay small.
"""
import logging
import re
import secrets
import string
import uuid
from typing import Optional

from django.contrib.auth.hashers import check_password, make_password
from django.db import IntegrityError, transaction

from events.exceptions import AlreadyRegistered, ValidationFailed
from .models import User

logger = logging.getLogger("felicity.users")

IIIT_EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@([a-zA-Z0-9-]+\.)*iiit\.ac\.in$", re.IGNORECASE)
EMAIL_REGEX = re.compile(r"^\S+@\S+\.\S+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_iiit_email(email: str) -> bool:
    return bool(IIIT_EMAIL_REGEX.match(email))


def accounts_for_email(email: str):
    return User.objects.filter(email=normalize_email(email)).order_by("date_joined", "id")


def resolve(email: str, password: str) -> Optional[User]:
    """
    Return the account addressed by (email, password), or None.

    None covers both "no such email" and "wrong password"; callers must not
    tell the two apart in user-facing messages.
    """
    email = normalize_email(email)
    if not email or not password:
        return None

    accounts = list(accounts_for_email(email).filter(is_active=True))
    if not accounts:
        return None

    iiit_account = next((acc for acc in accounts if acc.is_iiit), None)
    if iiit_account is not None:
        return iiit_account if iiit_account.check_password(password) else None

    for account in accounts:
        if account.check_password(password):
            return account
    return None


def _generate_username(email: str) -> str:
    local = email.split("@", 1)[0][:100] or "user"
    return f"{local}-{uuid.uuid4().hex[:10]}"


def check_credential_free(accounts, password, exclude=None):
    """
    (email, password) is the guest identity key: no other account under the
    email may already accept this password.
    """
    for account in accounts:
        if exclude is not None and account.pk == exclude.pk:
            continue
        if check_password(password, account.password):
            logger.info("Credential collision on shared email")
            raise AlreadyRegistered(
                "This password is already associated with an account using this email. "
                "Please use a different password to create a distinct identity.",
                code="credential_in_use",
            )


def register_account(name, email, password, is_iiit=False, **profile) -> User:
    """
    Create a participant account.

    IIIT: email must be on the iiit.ac.in domain and not used by any account.
    Guest: email may be shared, but the password must not match any existing
    account under that email (one password = one identity).
    """
    name = (name or "").strip()
    email = normalize_email(email)

    if not name or not email or not password:
        raise ValidationFailed("Please provide name, email, and password", code="invalid_payload")
    if not EMAIL_REGEX.match(email):
        raise ValidationFailed("Please provide a valid email", code="invalid_email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            code="weak_password",
        )

    existing = list(accounts_for_email(email))

    if is_iiit:
        if not is_iiit_email(email):
            raise ValidationFailed(
                "Only IIIT email addresses (@iiit.ac.in) are allowed for IIIT Student registration",
                code="invalid_email_domain",
            )
        if existing:
            raise AlreadyRegistered("A user with this email already exists", code="email_taken")
    else:
        if any(account.is_iiit for account in existing):
            raise AlreadyRegistered("This email belongs to an IIIT account", code="email_taken")
        check_credential_free(existing, password)

    try:
        with transaction.atomic():
            user = User.objects.create(
                username=_generate_username(email),
                name=name,
                email=email,
                password=make_password(password),
                role=User.ROLE_PARTICIPANT,
                is_iiit=bool(is_iiit),
                first_name=profile.get("first_name") or "",
                last_name=profile.get("last_name") or "",
                contact_number=profile.get("contact_number"),
                college=profile.get("college"),
                interests=profile.get("interests") or [],
            )
    except IntegrityError:
        # unique_iiit_email lost a race
        raise AlreadyRegistered("A user with this email already exists", code="email_taken")

    logger.info(f"Account created: user={user.id}, iiit={user.is_iiit}, shared_email={len(existing)}")
    return user


def change_password(user: User, current_password, new_password) -> User:
    """
    The new password goes through the same sibling scan as guest sign-up, so
    a password change cannot make two accounts under one email collide.
    """
    if not current_password or not user.check_password(current_password):
        raise ValidationFailed("Invalid current password", code="invalid_password")
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            code="weak_password",
        )

    check_credential_free(accounts_for_email(user.email), new_password, exclude=user)

    user.set_password(new_password)
    user.save(update_fields=["password"])
    logger.info(f"Password changed: user={user.id}")
    return user


def generate_password(length: int = 12) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def create_organizer(name, email, **profile):
    """
    Admin-provisioned organizer account. Returns (user, plain_password); the
    password is shown once to the admin and never stored in clear.
    """
    name = (name or "").strip()
    email = normalize_email(email)
    if not name or not email:
        raise ValidationFailed("Please provide name and email", code="invalid_payload")
    if not EMAIL_REGEX.match(email):
        raise ValidationFailed("Please provide a valid email", code="invalid_email")
    if accounts_for_email(email).exists():
        raise AlreadyRegistered("A user with this email already exists", code="email_taken")

    password = generate_password()
    user = User.objects.create(
        username=_generate_username(email),
        name=name,
        email=email,
        password=make_password(password),
        role=User.ROLE_ORGANIZER,
        category=profile.get("category"),
        description=profile.get("description"),
        contact_email=profile.get("contact_email"),
    )
    logger.info(f"Organizer created: user={user.id}")
    return user, password


def ensure_admin(name, email, password):
    """Create the platform admin unless an account already owns the email. Returns (user, created)."""
    email = normalize_email(email)
    existing = accounts_for_email(email).first()
    if existing is not None:
        return existing, False

    user = User.objects.create(
        username=_generate_username(email),
        name=name,
        email=email,
        password=make_password(password),
        role=User.ROLE_ADMIN,
        is_staff=True,
    )
    logger.info(f"Admin account seeded: user={user.id}")
    return user, True
