import hashlib
import logging
import re

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from errors import DuplicateEmail, InvalidCredentials, InvalidInput, NotFound
from ledger.validation import require_text
from models import db, store_errors, User

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
AVATAR_URL = 'https://i.pravatar.cc/150?u={}'

# one throwaway hash per method, checked when the email is unknown
_dummy_hashes = {}


def _hash_method():
    return current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt')


def _dummy_hash(method):
    if method not in _dummy_hashes:
        _dummy_hashes[method] = generate_password_hash('not-a-real-password', method=method)
    return _dummy_hashes[method]


def normalize_email(email):
    return email.strip().lower() if isinstance(email, str) else ''


def default_avatar(email):
    return AVATAR_URL.format(hashlib.sha256(normalize_email(email).encode('utf-8')).hexdigest())


def profile_of(user):
    return {'id': user.id, 'name': user.name, 'email': user.email, 'avatar': user.avatar_url}


def register(name, email, raw_password):
    name = require_text(name, 'name', 120)
    email = require_text(normalize_email(email), 'email', 255)
    if not EMAIL_RE.match(email):
        raise InvalidInput('email is not a valid address.')
    min_length = current_app.config.get('MIN_PASSWORD_LENGTH', 8)
    if not isinstance(raw_password, str) or len(raw_password) < min_length:
        raise InvalidInput(f'password must be at least {min_length} characters.')

    with store_errors('register'):
        if User.query.filter_by(email=email).first():
            raise DuplicateEmail()
        user = User(
            name=name,
            email=email,
            password_hash=generate_password_hash(raw_password, method=_hash_method()),
            avatar_url=default_avatar(email),
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateEmail() from exc
        user_id = user.id
    logger.info('Registered user %s', user_id)
    return user_id


def authenticate(email, raw_password):
    """Return the user id for a matching email/password pair.

    Unknown emails still pay for a hash check so that both failure paths
    look and take the same.
    """
    email = normalize_email(email)
    raw_password = raw_password if isinstance(raw_password, str) else ''
    with store_errors('authenticate'):
        user = User.query.filter_by(email=email).first() if email else None
    if user is None:
        check_password_hash(_dummy_hash(_hash_method()), raw_password)
        logger.info('Failed login attempt')
        raise InvalidCredentials()
    if not check_password_hash(user.password_hash, raw_password):
        logger.info('Failed login attempt')
        raise InvalidCredentials()
    logger.info('User %s logged in', user.id)
    return user.id


def _get_user(user_id):
    with store_errors('user lookup'):
        user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found.')
    return user


def get_profile(user_id):
    return profile_of(_get_user(user_id))


def update_avatar(user_id, avatar_url):
    avatar_url = require_text(avatar_url, 'avatar', 255)
    user = _get_user(user_id)
    with store_errors('update avatar'):
        user.avatar_url = avatar_url
        db.session.commit()
        return profile_of(user)
