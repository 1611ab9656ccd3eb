from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from models import db, Category, User

PASSWORD = 'correct-horse'


def shift_month(day, months):
    """First day of the month `months` away from `day`."""
    idx = day.year * 12 + (day.month - 1) + months
    year, month = divmod(idx, 12)
    return date(year, month + 1, 1)


def test_health(client):
    assert client.get('/health').get_json() == {'status': 'ok'}


@pytest.mark.parametrize('method,path', [
    ('get', '/api/user'),
    ('put', '/api/user/avatar'),
    ('get', '/api/categories'),
    ('post', '/api/categories'),
    ('put', '/api/categories/1'),
    ('get', '/api/expenses'),
    ('post', '/api/expenses'),
    ('get', '/api/budget-status'),
])
def test_api_requires_login(client, method, path):
    resp = getattr(client, method)(path, json={})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'unauthenticated'


def test_register_login_profile_logout(client):
    resp = client.post('/register', json={'name': 'Ann', 'email': 'Ann@Example.com', 'password': PASSWORD})
    assert resp.status_code == 201
    user_id = resp.get_json()['id']

    resp = client.post('/login', data={'email': 'ann@example.com', 'password': PASSWORD})
    assert resp.get_json() == {'id': user_id}

    profile = client.get('/api/user').get_json()
    assert profile['name'] == 'Ann'
    assert profile['email'] == 'ann@example.com'
    assert profile['avatar'].startswith('https://')
    assert 'password' not in str(profile)

    assert client.post('/logout').status_code == 200
    assert client.get('/api/user').status_code == 401


def test_register_duplicate_and_invalid(client, make_user):
    make_user(email='taken@example.com')
    resp = client.post('/register', json={'name': 'X', 'email': 'TAKEN@example.com', 'password': PASSWORD})
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'duplicate_email'
    resp = client.post('/register', json={'name': 'X', 'email': 'x@example.com', 'password': 'short'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'invalid_input'


def test_login_failures_are_indistinguishable(client, make_user):
    make_user(email='real@example.com')
    wrong_password = client.post('/login', json={'email': 'real@example.com', 'password': 'nope-nope'})
    unknown_email = client.post('/login', json={'email': 'ghost@example.com', 'password': PASSWORD})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json()
    assert client.get('/api/user').status_code == 401


def test_budget_status_end_to_end(client, login):
    login()
    today = date.today()
    this_month = today.replace(day=1).isoformat()
    last_month = shift_month(today, -1).isoformat()

    food = client.post('/api/categories', json={'name': 'Food', 'budget': 200}).get_json()['id']
    rent = client.post('/api/categories', json={'name': 'Rent', 'budget': 1000}).get_json()['id']
    for cid, amount, day in [(food, 30, this_month), (food, 25, this_month),
                             (food, 10, last_month), (rent, 1000, this_month)]:
        resp = client.post('/api/expenses', json={
            'category_id': cid, 'description': 'x', 'amount': amount, 'expense_date': day})
        assert resp.status_code == 201

    assert client.get('/api/budget-status').get_json() == [
        {'category_id': food, 'name': 'Food', 'budget': 200.0, 'spent': 55.0},
        {'category_id': rent, 'name': 'Rent', 'budget': 1000.0, 'spent': 1000.0},
    ]

    prev = shift_month(today, -1)
    resp = client.get(f'/api/budget-status?year={prev.year}&month={prev.month}')
    assert [r['spent'] for r in resp.get_json()] == [10.0, 0.0]

    listed = client.get('/api/expenses').get_json()
    assert len(listed) == 4
    assert listed[-1]['expense_date'] == last_month


@pytest.mark.parametrize('query', [
    '?year=2024', '?month=3', '?year=2024&month=13', '?year=abc&month=xyz', '?year=2024&month=3.5',
])
def test_budget_status_rejects_partial_month(client, login, query):
    login()
    resp = client.get('/api/budget-status' + query)
    assert resp.status_code == 400


def test_cross_user_expense_is_forbidden(client, login, make_user):
    from ledger import categories

    other = make_user()
    foreign = categories.create(other, 'Secret', 10)
    login()
    resp = client.post('/api/expenses', json={
        'category_id': foreign, 'amount': 5, 'expense_date': '2024-03-01'})
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'category_ownership_mismatch'
    assert client.get('/api/expenses').get_json() == []


def test_expense_amount_must_be_positive(client, login):
    login()
    cid = client.post('/api/categories', json={'name': 'Food', 'budget': 10}).get_json()['id']
    resp = client.post('/api/expenses', json={'category_id': cid, 'amount': 0, 'expense_date': '2024-03-01'})
    assert resp.status_code == 400
    assert client.get('/api/expenses').get_json() == []


def test_category_conflicts_and_budget_update(client, login):
    login()
    cid = client.post('/api/categories', json={'name': 'Food', 'budget': 10}).get_json()['id']
    resp = client.post('/api/categories', json={'name': 'food', 'budget': 20})
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'duplicate_name'

    resp = client.put(f'/api/categories/{cid}', json={'budget': 75})
    assert resp.get_json() == {'id': cid, 'name': 'Food', 'budget': 75.0}
    assert client.put(f'/api/categories/{cid + 1}', json={'budget': 75}).status_code == 404


def test_update_avatar(client, login):
    login()
    resp = client.put('/api/user/avatar', json={'avatar': 'https://example.com/a.png'})
    assert resp.status_code == 200
    assert client.get('/api/user').get_json()['avatar'] == 'https://example.com/a.png'


def test_store_outage_returns_503_and_app_keeps_serving(client, login, monkeypatch):
    login()

    def broken(*args, **kwargs):
        raise OperationalError('INSERT', {}, Exception('database is gone'))

    monkeypatch.setattr(db.session, 'commit', broken)
    resp = client.post('/api/categories', json={'name': 'Food', 'budget': 10})
    assert resp.status_code == 503
    assert resp.get_json()['error'] == 'store_unavailable'

    monkeypatch.undo()
    assert client.get('/api/categories').get_json() == []
    assert client.get('/health').status_code == 200


def test_budget_status_for_last_representable_month(client, login):
    login()
    client.post('/api/categories', json={'name': 'Food', 'budget': 10})
    resp = client.get('/api/budget-status?year=9999&month=12')
    assert resp.status_code == 200
    assert resp.get_json()[0]['spent'] == 0.0


def test_oversized_ids_are_rejected(client, login):
    login()
    resp = client.post('/api/expenses', json={
        'category_id': 2 ** 70, 'amount': 5, 'expense_date': '2024-03-01'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'invalid_input'
    assert client.put(f'/api/categories/{2 ** 70}', json={'budget': 5}).status_code == 400


def test_session_of_removed_user_cannot_write(client, login):
    user_id = login()
    db.session.delete(db.session.get(User, user_id))
    db.session.commit()

    resp = client.post('/api/categories', json={'name': 'Ghost', 'budget': 10})
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'not_found'
    assert Category.query.count() == 0
    assert client.get('/api/user').status_code == 404
