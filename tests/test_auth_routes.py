from tests.conftest import FakeAuthError, csrf_headers, csrf_token, login, make_token


def test_login_rejects_missing_csrf_token(client, account):
    response = client.post(
        "/auth/login",
        data={"email": account.email, "password": account.password},
        follow_redirects=False,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid request."


def test_login_sets_cookie_principal_and_redirects(client, backend, account):
    response = login(client, account.email, account.password, return_url="/pantry")

    assert response.status_code == 303
    assert response.headers["location"] == "/pantry"

    me = client.get("/auth/me")
    assert me.status_code == 200
    body = me.json()
    assert body["auth"]["is_authenticated"] is True
    assert body["auth"]["user_id"] == account.user_id
    assert body["profile"]["display_name"] == "Anna Maria"
    assert body["household"]["name"] == "Anna Maria's Household"
    assert body["household"]["role"] == "owner"


def test_login_sanitizes_absolute_return_url(client, account):
    response = login(client, account.email, account.password, return_url="https://evil.example.com/steal")
    assert response.headers["location"] == "/"


def test_login_rejects_backslash_return_url(client, account):
    response = login(client, account.email, account.password, return_url="/\\evil.example.com")
    assert response.headers["location"] == "/"


def test_login_with_blank_fields_redirects_with_missing(client):
    response = login(client, "", "")
    assert response.status_code == 303
    assert response.headers["location"] == "/login?error=missing"


def test_login_with_bad_password_redirects_with_invalid(client, account):
    response = login(client, account.email, "wrong-password")
    assert response.headers["location"] == "/login?error=invalid"
    assert client.get("/auth/me").status_code == 401


def test_login_unconfirmed_email_redirects_with_confirm(client, backend):
    backend.register("new@example.com", "secret123", confirmed=False)
    response = login(client, "new@example.com", "secret123")
    assert response.headers["location"] == "/login?error=confirm"


def test_login_rate_limited_by_provider(client, backend, account):
    backend.sign_in_error = FakeAuthError("Request rate limit reached", "over_request_rate_limit")
    response = login(client, account.email, account.password)
    assert response.headers["location"] == "/login?error=rate"


def test_login_unexpected_error_redirects_with_unknown(client, backend, account):
    backend.sign_in_error = FakeAuthError("upstream timed out")
    response = login(client, account.email, account.password)
    assert response.headers["location"] == "/login?error=unknown"


def test_second_login_reuses_profile_and_household(client, backend, account):
    login(client, account.email, account.password)
    login(client, account.email, account.password)

    assert len(backend.rows("users")) == 1
    assert len(backend.rows("groups")) == 1
    assert len(backend.rows("group_members")) == 1


def test_requests_after_login_hydrate_a_fresh_sdk_client(signed_in, backend):
    backend.set_session_calls.clear()
    assert signed_in.get("/api/v1/users/me").status_code == 200
    assert len(backend.set_session_calls) == 1


def test_refreshed_tokens_are_written_back_to_the_cookie(signed_in, backend, account):
    signed_in.get("/api/v1/users/me")
    current_access = backend.set_session_calls[-1][0]
    new_access = make_token(account.user_id, account.email, exp=4102444800)
    backend.refresh_on_set_session[current_access] = new_access

    signed_in.get("/api/v1/users/me")
    signed_in.get("/api/v1/users/me")

    assert backend.set_session_calls[-1][0] == new_access


def test_requests_survive_a_failed_session_hydration(signed_in, backend):
    backend.reject_set_session = True
    response = signed_in.get("/api/v1/users/me")
    assert response.status_code == 200
    assert response.json()["email"] == "anna.maria@example.com"


def test_logout_signs_out_and_clears_cookie(signed_in, backend, account):
    response = signed_in.post("/auth/logout", headers=csrf_headers(signed_in), follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert backend.signed_out == [account.user_id]
    assert signed_in.get("/auth/me").status_code == 401


def test_signup_signs_in_and_provisions_with_preferred_name(client, backend):
    response = client.post(
        "/auth/signup",
        data={
            "first_name": "jane",
            "last_name": "DOE",
            "email": "jd@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
            "csrf_token": csrf_token(client),
        },
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert backend.accounts["jd@example.com"]["metadata"] == {"display_name": "Jane Doe"}
    household = client.get("/api/v1/households/current").json()
    assert household["name"] == "Jane Doe's Household"


def test_signup_pending_confirmation_redirects_to_login(client, backend):
    backend.require_confirmation = True
    response = client.post(
        "/auth/signup",
        data={
            "email": "jd@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
            "csrf_token": csrf_token(client),
        },
        follow_redirects=False,
    )
    assert response.headers["location"] == "/login?registered=confirm"
    assert backend.rows("users") == []


def test_signup_validation_errors(client, account):
    def submit(**fields):
        data = {"email": "x@example.com", "password": "secret123", "confirm_password": "secret123"}
        data.update(fields)
        data["csrf_token"] = csrf_token(client)
        return client.post("/auth/signup", data=data, follow_redirects=False).headers["location"]

    assert submit(email="") == "/signup?error=missing"
    assert submit(password="abc", confirm_password="abc") == "/signup?error=weak"
    assert submit(confirm_password="different") == "/signup?error=mismatch"
    assert submit(email=account.email) == "/signup?error=exists"


def test_api_requires_authentication(client):
    assert client.get("/api/v1/shopping-list").status_code == 401
    assert client.get("/api/v1/households/current").status_code == 401


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}
    assert client.get("/health").headers["X-Frame-Options"] == "DENY"
