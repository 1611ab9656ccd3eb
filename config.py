import os


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///finance.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    MIN_PASSWORD_LENGTH = int(os.environ.get('MIN_PASSWORD_LENGTH', 8))
    # any method werkzeug.security understands, e.g. 'scrypt' or 'pbkdf2:sha256'
    PASSWORD_HASH_METHOD = os.environ.get('PASSWORD_HASH_METHOD', 'scrypt')
