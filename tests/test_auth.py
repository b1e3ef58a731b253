import time

import jwt
import pytest
from flask import Flask, g
from werkzeug.exceptions import Forbidden

from sellerdash.auth import AuthService, JWTClaims
from sellerdash.config import Settings


def make_settings(**overrides):
    return Settings(**overrides)


def test_default_claims_used_when_disabled():
    svc = AuthService(settings=make_settings(disable_auth=True, jwt_secret="s"))
    claims = svc.current_claims()
    assert claims["role"] == "Admin"
    assert "exp" in claims


def test_decode_and_role_mapping_valid_token():
    s = make_settings(jwt_secret="secret", disable_auth=False)
    svc = AuthService(settings=s)
    payload = {"sub": "ops@store", "name": "Ops", "role": "Operator", "store_id": "s1", "exp": int(time.time()) + 60}
    tok = jwt.encode(payload, s.jwt_secret, algorithm="HS256")
    decoded = svc._decode_jwt(tok)
    model = JWTClaims.model_validate(decoded)
    assert model.role == "Admin"
    assert model.store_id == "s1"


@pytest.mark.parametrize("raw,expected", [("Merchant", "Seller"), ("Nobody", "Seller"), (None, "Seller"), ("Admin", "Admin")])
def test_role_normalization(raw, expected):
    assert JWTClaims(sub="x", role=raw, exp=1).role == expected


def test_decode_invalid_token_raises():
    s = make_settings(jwt_secret="secret")
    svc = AuthService(settings=s)
    with pytest.raises(jwt.PyJWTError):
        svc._decode_jwt("not-a-token")


def test_decode_expired_token_raises():
    s = make_settings(jwt_secret="secret")
    tok = jwt.encode({"sub": "x", "exp": int(time.time()) - 10}, s.jwt_secret, algorithm="HS256")
    with pytest.raises(jwt.ExpiredSignatureError):
        AuthService(settings=s)._decode_jwt(tok)


def test_require_role_checks_request_claims():
    svc = AuthService(settings=make_settings())
    server = Flask(__name__)

    @svc.require_role("Admin")
    def view():
        return "ok"

    with server.test_request_context("/"):
        g.claims = {"role": "Seller"}
        with pytest.raises(Forbidden):
            view()
        g.claims = {"role": "Admin"}
        assert view() == "ok"


def test_guard_skips_health_and_assets():
    svc = AuthService(settings=make_settings(disable_auth=False, jwt_secret="secret"))
    server = Flask(__name__)
    svc.init_app(server)

    @server.route("/health")
    def health():
        return "ok"

    @server.route("/private")
    def private():
        return "secret"

    client = server.test_client()
    assert client.get("/health").status_code == 200
    assert client.get("/private").status_code == 401
    assert client.get("/private", headers={"Authorization": "Bearer junk"}).status_code == 401
