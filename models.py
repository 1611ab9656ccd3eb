import logging
import sqlite3
from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from errors import StoreUnavailable

db = SQLAlchemy()
logger = logging.getLogger(__name__)

MONEY = db.Numeric(12, 2)


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys = ON')
        cursor.close()


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = db.Column(db.String(255), nullable=False)
    avatar_url = db.Column(db.String(255), nullable=False)
    categories = db.relationship('Category', backref='user', lazy=True)


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    name_key = db.Column(db.String(100), nullable=False)  # casefolded name, drives uniqueness and ordering
    budget = db.Column(MONEY, nullable=False, default=0)
    expenses = db.relationship('Expense', backref='category', lazy=True)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'name_key', name='uq_category_user_name'),
    )

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'budget': float(self.budget)}


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False, default='')
    amount = db.Column(MONEY, nullable=False)  # always positive
    expense_date = db.Column(db.Date, nullable=False)

    __table_args__ = (
        db.Index('ix_expenses_user_date', 'user_id', 'expense_date'),
    )


def user_exists(user_id):
    return db.session.get(User, user_id) is not None


@contextmanager
def store_errors(action):
    """Roll back and re-raise any database failure inside the block as StoreUnavailable."""
    try:
        yield db.session
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error('Store failure during %s: %s', action, exc)
        raise StoreUnavailable() from exc
