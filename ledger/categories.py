import logging

from sqlalchemy.exc import IntegrityError

from errors import CategoryNotFound, CategoryOwnershipMismatch, DuplicateName, NotFound
from ledger.validation import parse_id, parse_money, require_text
from models import db, store_errors, user_exists, Category

logger = logging.getLogger(__name__)


def name_key(name):
    """Category names are unique per user ignoring case."""
    return name.casefold()


def create(user_id, name, budget):
    name = require_text(name, 'name', 100)
    budget = parse_money(budget, 'budget', allow_zero=True)
    key = name_key(name)

    with store_errors('create category'):
        if Category.query.filter_by(user_id=user_id, name_key=key).first():
            raise DuplicateName()
        category = Category(user_id=user_id, name=name, name_key=key, budget=budget)
        db.session.add(category)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if not user_exists(user_id):
                raise NotFound('User not found.') from exc
            raise DuplicateName() from exc
        category_id = category.id
    logger.info('User %s created category %s', user_id, category_id)
    return category_id


def list_for_user(user_id):
    with store_errors('list categories'):
        rows = (Category.query.filter_by(user_id=user_id)
                .order_by(Category.name_key, Category.id).all())
        return [c.to_dict() for c in rows]


def get_owned(user_id, category_id):
    """Load a category and check that user_id owns it."""
    with store_errors('category lookup'):
        category = db.session.get(Category, category_id)
    if category is None:
        raise CategoryNotFound()
    if category.user_id != user_id:
        logger.warning('User %s referenced category %s owned by another user', user_id, category_id)
        raise CategoryOwnershipMismatch()
    return category


def update_budget(user_id, category_id, budget):
    category_id = parse_id(category_id, 'category_id')
    budget = parse_money(budget, 'budget', allow_zero=True)
    category = get_owned(user_id, category_id)
    with store_errors('update category budget'):
        category.budget = budget
        db.session.commit()
        return category.to_dict()
