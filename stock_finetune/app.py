# app.py
import logging

import bcrypt
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager, create_access_token, get_jwt_identity, jwt_required

from .config import Settings
from .db import DuplicateEmailError, UserStore

logger = logging.getLogger(__name__)

SALT_ROUNDS = 10


# helpers
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=SALT_ROUNDS)).decode()


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def create_app(settings: Settings, store: UserStore = None) -> Flask:
    app = Flask(__name__)
    CORS(app)
    app.config['JWT_SECRET_KEY'] = settings.jwt_secret_key
    JWTManager(app)

    if store is None:
        store = UserStore.from_url(settings.database_url)
        store.init_db()

    @app.route('/register', methods=['POST'])
    def register():
        data = request.get_json(silent=True) or {}
        name = data.get('name')
        email = data.get('email')
        password = data.get('password')
        if not name or not email or not password:
            return jsonify({'message': 'Name, email, and password are required.'}), 400
        try:
            if store.find_by_email(email):
                return jsonify({'message': 'User with this email already exists.'}), 409
            store.create_user(name, email, hash_password(password))
        except DuplicateEmailError:
            return jsonify({'message': 'User with this email already exists.'}), 409
        except Exception:
            logger.exception("Error registering user %s", email)
            return jsonify({'message': 'Error registering user'}), 500
        return jsonify({'message': 'User registered successfully.'}), 201

    @app.route('/login', methods=['POST'])
    def login():
        data = request.get_json(silent=True) or {}
        email = data.get('email')
        password = data.get('password')
        if not email or not password:
            return jsonify({'message': 'Email and password are required.'}), 400
        try:
            user = store.find_by_email(email)
        except Exception:
            logger.exception("Error logging in user %s", email)
            return jsonify({'message': 'Error logging in'}), 500
        if not user or not check_password(password, user['password_hash']):
            return jsonify({'message': 'Invalid credentials.'}), 401
        token = create_access_token(identity=email)
        return jsonify({'access_token': token})

    @app.route('/me', methods=['GET'])
    @jwt_required()
    def me():
        user = store.find_by_email(get_jwt_identity())
        if not user:
            return jsonify({'message': 'User not found.'}), 404
        return jsonify({'name': user['name'], 'email': user['email']})

    return app

