from functools import wraps

from flask import session

from errors import Unauthenticated


def resolve():
    """Return the authenticated user id for the current request, or None."""
    uid = session.get('user_id')
    return uid if isinstance(uid, int) else None


def sign_in(user_id):
    session.clear()
    session['user_id'] = user_id


def sign_out():
    session.clear()


def login_required(view_func):
    """Refuse the request before the view runs unless a user id resolves.

    The view receives the resolved id as its first positional argument.
    """
    @wraps(view_func)
    def wrapped(*args, **kwargs):
        user_id = resolve()
        if user_id is None:
            raise Unauthenticated()
        return view_func(user_id, *args, **kwargs)
    return wrapped
