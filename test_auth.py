import time
from datetime import timedelta

from jose import jwt

from studium.config import JWT_SECRET
from studium.models import Conversation, Message, MessageRole, Notebook, Source, User
from studium.routers.auth import ALGORITHM, create_access_token, verify_password


def test_signup_returns_token_and_sanitized_user(client, db):
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": "new@example.com", "password": "secret123", "name": "Ada"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User created successfully"
    assert data["user"] == {"id": data["user"]["id"], "email": "new@example.com", "name": "Ada"}
    assert "password" not in response.text
    assert "hashed" not in response.text

    payload = jwt.decode(data["token"], JWT_SECRET, algorithms=[ALGORITHM])
    assert payload["sub"] == data["user"]["id"]

    stored = db.query(User).filter(User.email == "new@example.com").first()
    assert stored.hashed_password != "secret123"
    assert stored.hashed_password.startswith("$2b$10$")
    assert verify_password("secret123", stored.hashed_password)


def test_signup_token_expires_in_seven_days(client):
    response = client.post("/api/v1/auth/signup", json={"email": "a@example.com", "password": "secret123"})
    payload = jwt.get_unverified_claims(response.json()["token"])
    assert abs(payload["exp"] - (time.time() + 7 * 24 * 3600)) < 60
    assert response.json()["user"]["name"] is None


def test_signup_duplicate_email_conflicts(client, user):
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": user.email, "password": "another123"},
    )
    assert response.status_code == 409
    assert response.json() == {"error": "User already exists with this email"}


def test_signup_validation_errors(client):
    response = client.post("/api/v1/auth/signup", json={"email": "not-an-email", "password": "123"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    fields = {detail["field"] for detail in body["details"]}
    assert fields == {"email", "password"}


def test_signin_success(client, user):
    response = client.post(
        "/api/v1/auth/signin",
        json={"email": "test@example.com", "password": "password123"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Signed in successfully"
    assert data["user"]["id"] == user.id
    assert "password" not in data["user"]
    assert jwt.decode(data["token"], JWT_SECRET, algorithms=[ALGORITHM])["sub"] == user.id


def test_signin_errors_are_indistinguishable(client, user):
    wrong_password = client.post(
        "/api/v1/auth/signin",
        json={"email": user.email, "password": "wrong-password"},
    )
    unknown_email = client.post(
        "/api/v1/auth/signin",
        json={"email": "nobody@example.com", "password": "password123"},
    )
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid email or password"}


def test_signin_email_is_case_sensitive(client, user):
    response = client.post(
        "/api/v1/auth/signin",
        json={"email": "Test@example.com", "password": "password123"},
    )
    assert response.status_code == 401


def test_signin_requires_password(client, user):
    response = client.post("/api/v1/auth/signin", json={"email": user.email})
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "password"


def test_legacy_auth_prefix(client, user):
    response = client.post(
        "/api/auth/signin",
        json={"email": user.email, "password": "password123"},
    )
    assert response.status_code == 200


def test_protected_route_without_token(client):
    response = client.get("/api/v1/notebooks")
    assert response.status_code == 401
    assert response.json() == {"error": "No token provided"}


def test_protected_route_with_bad_tokens(client, user):
    bad_signature = jwt.encode({"sub": user.id}, "some-other-secret", algorithm=ALGORITHM)
    expired = create_access_token(user.id, expires_delta=timedelta(seconds=-10))
    for token in ("garbage", bad_signature, expired):
        response = client.get("/api/v1/notebooks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}


def test_token_for_deleted_user_is_rejected(client, db, user, headers):
    db.delete(user)
    db.commit()
    response = client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401


def test_me_returns_current_user(client, user, headers):
    response = client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"id": user.id, "email": user.email, "name": None}


def test_delete_account_cascades(client, db, user, headers, make_notebook):
    notebook = make_notebook(user)
    conversation = Conversation(notebook_id=notebook.id)
    db.add(conversation)
    db.add(Source(
        notebook_id=notebook.id,
        file_name="a.txt",
        file_type="text/plain",
        file_size=1,
        file_path=f"{notebook.id}/a.txt",
    ))
    db.commit()
    db.add(Message(conversation_id=conversation.id, role=MessageRole.USER, content="hi"))
    db.commit()

    response = client.delete("/api/v1/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Account deleted successfully"}

    db.expire_all()
    assert db.query(User).count() == 0
    assert db.query(Notebook).count() == 0
    assert db.query(Source).count() == 0
    assert db.query(Conversation).count() == 0
    assert db.query(Message).count() == 0


def test_signin_email_domain_is_case_sensitive(client, user):
    response = client.post(
        "/api/v1/auth/signin",
        json={"email": "test@EXAMPLE.COM", "password": "password123"},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_signup_stores_email_exactly_as_given(client, db):
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": "Mixed.Case@Example.COM", "password": "secret123"},
    )
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "Mixed.Case@Example.COM"
    assert db.query(User).filter(User.email == "Mixed.Case@Example.COM").count() == 1

    # A differently cased domain is a different account
    other = client.post(
        "/api/v1/auth/signup",
        json={"email": "Mixed.Case@example.com", "password": "secret123"},
    )
    assert other.status_code == 201


def test_bearer_scheme_is_matched_exactly(client, user):
    token = create_access_token(user.id)
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"bearer {token}"})
    assert response.status_code == 401
    assert response.json() == {"error": "No token provided"}
