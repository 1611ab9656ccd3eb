import logging

from sqlalchemy.exc import IntegrityError

from errors import InvalidInput, NotFound
from ledger import categories
from ledger.validation import parse_date, parse_id, parse_money
from models import db, store_errors, Category, Expense

logger = logging.getLogger(__name__)


def create(user_id, category_id, description, amount, expense_date):
    category_id = parse_id(category_id, 'category_id')
    amount = parse_money(amount, 'amount', allow_zero=False)
    expense_date = parse_date(expense_date)
    if description is None:
        description = ''
    if not isinstance(description, str):
        raise InvalidInput('description must be text.')

    # never trust the client's category id without checking who owns it
    categories.get_owned(user_id, category_id)

    with store_errors('create expense'):
        expense = Expense(user_id=user_id, category_id=category_id,
                          description=description.strip(), amount=amount,
                          expense_date=expense_date)
        db.session.add(expense)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise NotFound('User or category no longer exists.') from exc
        expense_id = expense.id
    logger.info('User %s logged expense %s in category %s', user_id, expense_id, category_id)
    return expense_id


def list_for_user(user_id):
    """Return the user's expenses with their category names, newest first."""
    with store_errors('list expenses'):
        rows = (db.session.query(Expense, Category.name)
                .join(Category, Expense.category_id == Category.id)
                .filter(Expense.user_id == user_id)
                .order_by(Expense.expense_date.desc(), Expense.id.desc())
                .all())
    return [{
        'id': e.id,
        'description': e.description or '',
        'amount': float(e.amount),
        'expense_date': e.expense_date.isoformat(),
        'category_id': e.category_id,
        'category_name': name,
    } for e, name in rows]
