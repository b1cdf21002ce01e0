from types import SimpleNamespace

from fastapi import Depends
from fastapi.testclient import TestClient

from models import UserRole
from routers.deps import get_auth_service, require_roles
from services import AuthContext

from conftest import PASSWORD, link_params


def _register(client, email="a@x.com", password=PASSWORD, name="Ann", headers=None, **extra):
    body = {"email": email, "password": password, "name": name, **extra}
    return client.post("/api/auth/register", json=body, headers=headers or {})


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_root_and_health(client):
    assert client.get("/").json() == {"message": "Pocket Attendance Auth API is running"}
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "success", "database": "ok"}


def test_register_verify_login_flow(client, outbox, token_issuer):
    response = _register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    user = body["data"]["user"]
    assert user["email"] == "a@x.com"
    assert user["isEmailVerified"] is False
    assert user["role"] == "EMPLOYEE"
    assert "password" not in user
    assert "verificationToken" not in user

    link = link_params(outbox.last)
    assert link["userId"] == user["id"]

    wrong = client.post("/api/auth/verify-email", json={"userId": user["id"], "token": "wrong"})
    assert wrong.status_code == 400
    assert wrong.json() == {"status": "error", "message": "Invalid or expired verification token"}

    verified = client.post("/api/auth/verify-email", json=link)
    assert verified.status_code == 200
    data = verified.json()["data"]
    assert data["user"]["isEmailVerified"] is True
    verify_claims = token_issuer.decode(data["token"])

    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert login.status_code == 200
    login_data = login.json()["data"]
    login_claims = token_issuer.decode(login_data["token"])
    assert (login_claims.user_id, login_claims.company_id, login_claims.role) == (
        verify_claims.user_id,
        verify_claims.company_id,
        verify_claims.role,
    )
    assert login_claims.user_id == user["id"]
    assert login_claims.role is UserRole.EMPLOYEE

    again = client.post("/api/auth/verify-email", json=link)
    assert again.status_code == 400


def test_register_duplicate(client):
    assert _register(client).status_code == 201
    response = _register(client, email="A@X.com")
    assert response.status_code == 400
    assert response.json()["message"] == "This email address is already registered"


def test_register_weak_password(client, outbox):
    response = _register(client, password="abcdefgh")
    assert response.status_code == 400
    assert response.json() == {
        "status": "error",
        "message": "Password must contain at least one uppercase letter",
    }
    assert outbox.sent == []


def test_register_malformed_body(client):
    response = client.post("/api/auth/register", json={"email": "not-an-email", "password": PASSWORD})
    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["message"].startswith("email")


def test_register_with_mail_outage_still_creates_user(client, outbox, make_user):
    outbox.fail = True
    assert _register(client).status_code == 201
    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert login.status_code == 403


def test_admin_registers_into_own_company(client, make_user, make_company, bearer):
    acme = make_company("Acme")
    other = make_company("Other")
    admin = make_user(email="boss@x.com", role=UserRole.ADMIN, company_id=acme.id)

    response = _register(client, headers=bearer(admin), companyId=other.id)

    assert response.status_code == 201
    assert response.json()["data"]["user"]["companyId"] == acme.id


def test_super_admin_chooses_company(client, make_user, make_company, bearer):
    acme = make_company("Acme")
    root = make_user(email="root@x.com", role=UserRole.SUPER_ADMIN)

    response = _register(client, headers=bearer(root), companyId=acme.id)

    assert response.json()["data"]["user"]["companyId"] == acme.id


def test_anonymous_company_id_ignored(client, make_company):
    acme = make_company("Acme")
    response = _register(client, companyId=acme.id)
    assert response.json()["data"]["user"]["companyId"] is None


def test_register_with_bad_token_rejected(client):
    response = _register(client, headers=_auth("garbage"))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired session token"


def test_login_errors_do_not_reveal_accounts(client, make_user):
    make_user(email="a@x.com")
    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Wrong12345!"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@x.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown.status_code == 401
    assert wrong_password.json() == unknown.json()


def test_service_401s_carry_bearer_challenge(client, make_user, bearer):
    user = make_user(email="a@x.com")
    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Wrong12345!"})
    assert login.status_code == 401
    assert login.headers["WWW-Authenticate"] == "Bearer"

    password = client.put(
        "/api/auth/password",
        json={"currentPassword": "Wrong12345!", "newPassword": "Xyz98765#"},
        headers=bearer(user),
    )
    assert password.status_code == 401
    assert password.headers["WWW-Authenticate"] == "Bearer"

    not_found = client.post("/api/auth/verify-email", json={"userId": "missing", "token": "t"})
    assert "WWW-Authenticate" not in not_found.headers


def test_login_uses_stored_spelling(client, make_user):
    make_user(email="Ann@X.com")
    exact = client.post("/api/auth/login", json={"email": "Ann@X.com", "password": PASSWORD})
    assert exact.status_code == 200
    assert exact.json()["data"]["user"]["email"] == "Ann@X.com"

    lowered = client.post("/api/auth/login", json={"email": "ann@x.com", "password": PASSWORD})
    assert lowered.status_code == 401


def test_login_unverified(client, make_user):
    make_user(email="a@x.com", verified=False)
    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})

    assert response.status_code == 403
    body = response.json()
    assert body["status"] == "error"
    assert body["needsVerification"] is True
    assert body["email"] == "a@x.com"


def test_me(client, make_user, bearer):
    user = make_user()
    response = client.get("/api/auth/me", headers=bearer(user))
    assert response.status_code == 200
    assert response.json()["data"]["id"] == user.id
    assert response.json()["data"]["name"] == "Ann"


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json() == {"status": "error", "message": "Authentication required"}


def test_me_rejects_expired_token(client, make_user, bearer, clock):
    headers = bearer(make_user())
    clock.advance(hours=25)
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401


def test_me_for_deleted_user(client, bearer):
    ghost = SimpleNamespace(id="gone", company_id=None, role=UserRole.EMPLOYEE)
    response = client.get("/api/auth/me", headers=bearer(ghost))
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_resend_same_response_for_unknown_and_known(client, outbox):
    _register(client)
    outbox.sent.clear()

    known = client.post("/api/auth/resend-verification", json={"email": "a@x.com"})
    unknown = client.post("/api/auth/resend-verification", json={"email": "ghost@x.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(outbox.sent) == 1


def test_resend_old_link_dies(client, outbox):
    _register(client)
    first = link_params(outbox.last)
    client.post("/api/auth/resend-verification", json={"email": "a@x.com"})
    second = link_params(outbox.last)

    assert client.post("/api/auth/verify-email", json=first).status_code == 400
    assert client.post("/api/auth/verify-email", json=second).status_code == 200


def test_resend_verified(client, make_user):
    make_user(email="a@x.com")
    response = client.post("/api/auth/resend-verification", json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.json()["message"] == "This email address has already been verified"


def test_resend_mail_outage(client, outbox):
    _register(client)
    outbox.fail = True
    response = client.post("/api/auth/resend-verification", json={"email": "a@x.com"})
    assert response.status_code == 500
    assert response.json()["status"] == "error"


def test_verify_unknown_user(client):
    response = client.post("/api/auth/verify-email", json={"userId": "missing", "token": "t"})
    assert response.status_code == 404


def test_update_profile(client, make_user, bearer):
    user = make_user()
    response = client.put(
        "/api/auth/profile",
        json={"name": "Ann Lee", "email": "Ann.Lee@x.com"},
        headers=bearer(user),
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "ann.lee@x.com"
    assert response.json()["data"]["name"] == "Ann Lee"


def test_update_profile_duplicate(client, make_user, bearer):
    user = make_user()
    make_user(email="bob@x.com", name="Bob")
    response = client.put("/api/auth/profile", json={"name": "Ann", "email": "bob@x.com"}, headers=bearer(user))
    assert response.status_code == 400


def test_update_profile_requires_token(client):
    response = client.put("/api/auth/profile", json={"name": "Ann", "email": "a@x.com"})
    assert response.status_code == 401


def test_change_password(client, make_user, bearer):
    user = make_user(email="a@x.com")
    response = client.put(
        "/api/auth/password",
        json={"currentPassword": PASSWORD, "newPassword": "Xyz98765#"},
        headers=bearer(user),
    )
    assert response.status_code == 200
    assert response.json() == {"status": "success", "message": "Password changed"}

    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Xyz98765#"})
    assert login.status_code == 200


def test_change_password_wrong_current_keeps_old(client, make_user, bearer):
    user = make_user(email="a@x.com")
    response = client.put(
        "/api/auth/password",
        json={"currentPassword": "Wrong12345!", "newPassword": "Xyz98765#"},
        headers=bearer(user),
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Current password is incorrect"

    new = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Xyz98765#"})
    old = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert new.status_code == 401
    assert old.status_code == 200


def test_change_password_requires_token(client):
    response = client.put("/api/auth/password", json={"currentPassword": PASSWORD, "newPassword": "Xyz98765#"})
    assert response.status_code == 401


def test_setup_admin_only_once(client, token_issuer):
    first = client.post("/api/auth/setup", json={"email": "boss@x.com", "password": PASSWORD, "name": "Boss"})
    assert first.status_code == 201
    data = first.json()["data"]
    assert data["user"]["role"] == "ADMIN"
    assert data["user"]["isEmailVerified"] is True
    assert token_issuer.decode(data["token"]).role is UserRole.ADMIN

    second = client.post("/api/auth/setup", json={"email": "b2@x.com", "password": PASSWORD, "name": "B2"})
    assert second.status_code == 403
    assert second.json()["status"] == "error"


def test_role_gate(app, client, make_user, bearer):
    @app.get("/api/test/admin-only")
    def admin_only(ctx: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.SUPER_ADMIN))):
        return {"userId": ctx.user_id}

    admin = make_user(email="boss@x.com", role=UserRole.ADMIN)
    employee = make_user(email="emp@x.com")

    assert client.get("/api/test/admin-only", headers=bearer(admin)).json() == {"userId": admin.id}
    forbidden = client.get("/api/test/admin-only", headers=bearer(employee))
    assert forbidden.status_code == 403
    assert forbidden.json()["status"] == "error"
    assert client.get("/api/test/admin-only").status_code == 401


def test_unknown_route(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "Route not found"}


def test_unexpected_error_is_generic(app):
    def broken_service():
        raise RuntimeError("database exploded")

    app.dependency_overrides[get_auth_service] = broken_service
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})

    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "An unexpected error occurred"}
    assert "exploded" not in response.text
