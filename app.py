import logging
import os
from datetime import date

from flask import Blueprint, Flask, request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from errors import FinanceTrackerError, InvalidInput, StoreUnavailable
from ledger import accounts, budget, categories, expenses
from logging_config import configure_logging
from models import db
from session_gate import login_required, sign_in, sign_out

logger = logging.getLogger(__name__)

bp = Blueprint('tracker', __name__)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    configure_logging(app.config['LOG_LEVEL'])
    db.init_app(app)
    with app.app_context():
        db.create_all()
    app.register_blueprint(bp)
    return app


# ---------------------- Error Handlers ----------------------
@bp.app_errorhandler(FinanceTrackerError)
def handle_tracker_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@bp.app_errorhandler(SQLAlchemyError)
def handle_store_error(exc):
    db.session.rollback()
    logger.error('Unhandled store failure on %s: %s', request.path, exc)
    err = StoreUnavailable()
    return jsonify(err.to_dict()), err.status_code


# ---------------------- Request Helpers ----------------------
def _payload():
    data = request.get_json(silent=True)
    if data is None:
        return request.form
    if not isinstance(data, dict):
        raise InvalidInput('Request body must be a JSON object.')
    return data


def _int_arg(name):
    raw = request.args.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidInput(f'{name} must be an integer.')


def _reference_month():
    year = _int_arg('year')
    month = _int_arg('month')
    if year is None and month is None:
        return None
    if year is None or month is None or not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise InvalidInput('year and month must be given together, month in 1-12.')
    return date(year, month, 1)


# ---------------------- Routes: Auth ----------------------
@bp.route('/register', methods=['POST'])
def register():
    data = _payload()
    user_id = accounts.register(data.get('name'), data.get('email'), data.get('password'))
    return jsonify({'id': user_id}), 201


@bp.route('/login', methods=['POST'])
def login():
    data = _payload()
    user_id = accounts.authenticate(data.get('email'), data.get('password'))
    sign_in(user_id)
    return jsonify({'id': user_id})


@bp.route('/logout', methods=['GET', 'POST'])
def logout():
    sign_out()
    return jsonify({'message': 'Logged out.'})


# ---------------------- API: Profile ----------------------
@bp.route('/api/user')
@login_required
def api_user(user_id):
    return jsonify(accounts.get_profile(user_id))


@bp.route('/api/user/avatar', methods=['PUT'])
@login_required
def api_user_avatar(user_id):
    return jsonify(accounts.update_avatar(user_id, _payload().get('avatar')))


# ---------------------- API: Categories ----------------------
@bp.route('/api/categories', methods=['GET', 'POST'])
@login_required
def api_categories(user_id):
    if request.method == 'POST':
        data = _payload()
        category_id = categories.create(user_id, data.get('name'), data.get('budget'))
        return jsonify({'id': category_id}), 201
    return jsonify(categories.list_for_user(user_id))


@bp.route('/api/categories/<int:category_id>', methods=['PUT'])
@login_required
def api_category_budget(user_id, category_id):
    return jsonify(categories.update_budget(user_id, category_id, _payload().get('budget')))


# ---------------------- API: Expenses ----------------------
@bp.route('/api/expenses', methods=['GET', 'POST'])
@login_required
def api_expenses(user_id):
    if request.method == 'POST':
        data = _payload()
        expense_id = expenses.create(
            user_id,
            data.get('category_id'),
            data.get('description', ''),
            data.get('amount'),
            data.get('expense_date'),
        )
        return jsonify({'id': expense_id}), 201
    return jsonify(expenses.list_for_user(user_id))


# ---------------------- API: Budget Status ----------------------
@bp.route('/api/budget-status')
@login_required
def api_budget_status(user_id):
    return jsonify(budget.budget_status(user_id, _reference_month()))


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


app = create_app()

# ---------------------- Run App ----------------------
if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
