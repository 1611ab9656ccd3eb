from calendar import monthrange
from datetime import date, datetime

from sqlalchemy import and_, func

from models import db, store_errors, Category, Expense


def month_window(reference):
    """Return the first and last day (inclusive) of the reference month."""
    if isinstance(reference, datetime):
        reference = reference.date()
    start = reference.replace(day=1)
    end = reference.replace(day=monthrange(reference.year, reference.month)[1])
    return start, end


def budget_status(user_id, reference=None):
    """Spend-to-date per category for the calendar month containing `reference`.

    Categories are the anchor set: every category owned by the user yields
    exactly one row, with spent=0 when nothing was logged in the month.
    Runs as a single statement so the category list and the sums agree.
    """
    start, end = month_window(reference or date.today())
    spent = func.coalesce(func.sum(Expense.amount), 0).label('spent')
    with store_errors('budget status'):
        rows = (db.session.query(Category.id, Category.name, Category.budget, spent)
                .outerjoin(Expense, and_(
                    Expense.category_id == Category.id,
                    Expense.user_id == user_id,
                    Expense.expense_date >= start,
                    Expense.expense_date <= end,
                ))
                .filter(Category.user_id == user_id)
                .group_by(Category.id, Category.name, Category.name_key, Category.budget)
                .order_by(Category.name_key, Category.id)
                .all())
    return [{
        'category_id': r[0],
        'name': r[1],
        'budget': float(r[2]),
        'spent': float(r[3] or 0),
    } for r in rows]
