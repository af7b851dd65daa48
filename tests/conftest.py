import os
from http.cookies import SimpleCookie

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def generate_key_pair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


ACCESS_KEYS = generate_key_pair()
REFRESH_KEYS = generate_key_pair()

# Must be in place before the application modules read them
os.environ["DATABASE"] = "sqlite://"
os.environ["PRIV_ACCESS_KEY"], os.environ["PUB_ACCESS_KEY"] = ACCESS_KEYS
os.environ["PRIV_REFRESH_KEY"], os.environ["PUB_REFRESH_KEY"] = REFRESH_KEYS

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, StaticPool  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from blogapi.database import Base, get_db  # noqa: E402
from blogapi.main import app  # noqa: E402
from blogapi.models.user_model import User  # noqa: E402
from blogapi.services.tokens import TokenIssuer  # noqa: E402
from blogapi.utils.auth import generate_password  # noqa: E402

DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(DATABASE_URL,
                       connect_args={
                           "check_same_thread": False,
                       },
                       poolclass=StaticPool)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def override_get_db():
    database = TestingSessionLocal()
    try:
        yield database
    finally:
        database.close()

app.dependency_overrides[get_db] = override_get_db


def make_user(session, username, email, password, is_admin=False):
    salt, password_hash = generate_password(password)
    user = User(username=username, email=email, salt=salt, password_hash=password_hash,
                first_name="Test", last_name="User", is_admin=is_admin)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def refresh_cookie_from(response):
    """Returns the jwt morsel set by ``response``; Secure cookies are not replayed over http by the client."""
    cookie = SimpleCookie()
    for header in response.headers.get_list("set-cookie"):
        cookie.load(header)
    return cookie.get("jwt")


def cookie_header(token):
    return {"Cookie": f"jwt={token}"}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def issuer():
    return TokenIssuer(
        access_private_key=ACCESS_KEYS[0],
        access_public_key=ACCESS_KEYS[1],
        refresh_private_key=REFRESH_KEYS[0],
        refresh_public_key=REFRESH_KEYS[1],
    )


@pytest.fixture(autouse=True)
def setup_and_teardown():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    make_user(session, "user_example", "user@example.com", "password")
    make_user(session, "admin_example", "admin@example.com", "adminpass", is_admin=True)
    session.close()

    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def logged_in_user(client):
    response = client.post("/auth/login", json={"email": "user@example.com", "password": "password"})
    access_token = response.json()["accessToken"]
    refresh_token = refresh_cookie_from(response).value

    def logout():
        client.post("/auth/logout", headers=cookie_header(refresh_token))

    yield {"access_token": access_token, "refresh_token": refresh_token}, logout
