# db.py
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import select

meta = MetaData()

users = Table('users', meta,
    Column('id', Integer, primary_key=True),
    Column('name', String(150), nullable=False),
    Column('email', String(255), unique=True, nullable=False),
    Column('password_hash', String(200), nullable=False)
)


class DuplicateEmailError(Exception):
    pass


class UserStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, db_url: str) -> "UserStore":
        return cls(create_engine(db_url, echo=False, future=True))

    def init_db(self):
        meta.create_all(self.engine)

    def find_by_email(self, email: str) -> Optional[dict]:
        sel = select(users).where(users.c.email == email)
        with self.engine.connect() as conn:
            row = conn.execute(sel).first()
        return dict(row._mapping) if row else None

    def create_user(self, name: str, email: str, password_hash: str) -> int:
        ins = users.insert().values(name=name, email=email, password_hash=password_hash)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(ins)
        except IntegrityError as e:
            raise DuplicateEmailError(email) from e
        return result.inserted_primary_key[0]

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(users)).scalar_one()
