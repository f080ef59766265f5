"""Minimal in-memory Gregori API for local integration runs.

Implements just enough of the member, auth, category and order endpoints
to exercise the test kit's session handling: sign-in issues a
``SESSION`` cookie, protected routes answer 401 without one and category
writes answer 403 for non-admin members.
"""

import os
import re
import threading
import uuid
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, request
from werkzeug.serving import BaseWSGIServer, make_server

SESSION_COOKIE = "SESSION"
GENERAL_AUTHORITY = "GENERAL_MEMBER"
ADMIN_AUTHORITY = "ADMIN_MEMBER"

NAME_RE = re.compile(r"^[가-힣]{2,10}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_RE = re.compile(r"^(?=(.*[a-zA-Z].*){2,})(?=.*\d.*)(?=.*\W.*)[a-zA-Z0-9\S]{8,15}$")


# --- Helpers ------------------------------------------------------------------


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _envelope(message: str, data=None, status: str = "SUCCESS") -> dict:
    body = {"status": status, "message": message, "timestamp": _now()}
    if data is not None:
        body["data"] = data
    return body


def _fail(message: str, code: int):
    return jsonify(_envelope(message, status="FAIL")), code


def _public(member: dict) -> dict:
    return {k: v for k, v in member.items() if k != "password"}


# --- In-memory store ----------------------------------------------------------


class Store:
    def __init__(self):
        self.lock = threading.Lock()
        self.members: dict[int, dict] = {}
        # session id -> member id
        self.sessions: dict[str, int] = {}
        self.categories: dict[int, dict] = {}
        self.orders: dict[int, dict] = {}
        self._next_id = {"member": 1, "category": 1, "order": 1}

    def next_id(self, kind: str) -> int:
        value = self._next_id[kind]
        self._next_id[kind] = value + 1
        return value

    def add_member(self, name: str, email: str, password: str, authority: str) -> dict:
        member = {
            "id": self.next_id("member"),
            "email": email,
            "name": name,
            "password": password,
            "authority": authority,
            "isDeleted": False,
        }
        self.members[member["id"]] = member
        return member

    def find_member(self, email: str) -> dict | None:
        for member in self.members.values():
            if member["email"] == email and not member["isDeleted"]:
                return member
        return None


def create_app(
    admin_email: str | None = None,
    admin_password: str | None = None,
    admin_name: str = "관리자테스트",
) -> Flask:
    """Build a fresh app with its own store and one seeded admin member."""

    app = Flask(__name__)
    store = Store()
    store.add_member(
        admin_name,
        admin_email or os.environ.get("MOCK_ADMIN_EMAIL", "test-admin-member@integration.test"),
        admin_password or os.environ.get("MOCK_ADMIN_PASSWORD", "Admin123!@"),
        ADMIN_AUTHORITY,
    )
    app.config["STORE"] = store

    def current_member() -> dict | None:
        sid = request.cookies.get(SESSION_COOKIE)
        member_id = store.sessions.get(sid) if sid else None
        if member_id is None:
            return None
        member = store.members.get(member_id)
        return member if member and not member["isDeleted"] else None

    # --- Auth -----------------------------------------------------------------

    @app.route("/auth/signin", methods=["POST"])
    def signin():
        body = request.get_json(silent=True) or {}
        email = body.get("email")
        password = body.get("password")
        if not email or not password:
            return _fail("email and password are required", 400)
        with store.lock:
            member = store.find_member(email)
            if member is None or member["password"] != password:
                return _fail("member not found", 404)
            sid = uuid.uuid4().hex
            store.sessions[sid] = member["id"]
        resp = jsonify(_envelope("signed in", {"member": _public(member)}))
        resp.set_cookie(SESSION_COOKIE, sid, path="/", httponly=True, samesite="Lax")
        return resp

    @app.route("/auth/signout", methods=["POST"])
    def signout():
        sid = request.cookies.get(SESSION_COOKIE)
        with store.lock:
            if not sid or store.sessions.pop(sid, None) is None:
                return _fail("not signed in", 401)
        resp = Response(status=204)
        resp.delete_cookie(SESSION_COOKIE, path="/")
        return resp

    # --- Members --------------------------------------------------------------

    @app.route("/member/register", methods=["POST"])
    def register():
        body = request.get_json(silent=True) or {}
        name = body.get("name") or ""
        email = body.get("email") or ""
        password = body.get("password") or ""
        if not NAME_RE.match(name):
            return _fail("name must be 2-10 Hangul characters", 400)
        if not EMAIL_RE.match(email):
            return _fail("email must be a valid address", 400)
        if not PASSWORD_RE.match(password):
            return _fail("password does not meet the policy", 400)
        with store.lock:
            if store.find_member(email) is not None:
                return _fail("email already registered", 409)
            member = store.add_member(name, email, password, GENERAL_AUTHORITY)
        resp = jsonify(_envelope("registered"))
        resp.status_code = 201
        resp.headers["Location"] = f"/member/{member['id']}"
        return resp

    @app.route("/member", methods=["GET"])
    def get_member():
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        return jsonify(_public(member))

    @app.route("/member/name", methods=["POST"])
    def update_member_name():
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        name = (request.get_json(silent=True) or {}).get("name") or ""
        if not NAME_RE.match(name):
            return _fail("name must be 2-10 Hangul characters", 400)
        member["name"] = name
        return jsonify(_envelope("name updated"))

    @app.route("/member", methods=["DELETE"])
    def delete_member():
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        with store.lock:
            member["isDeleted"] = True
            for sid in [s for s, m in store.sessions.items() if m == member["id"]]:
                del store.sessions[sid]
        return Response(status=204)

    # --- Categories -----------------------------------------------------------

    def require_admin():
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        if member["authority"] != ADMIN_AUTHORITY:
            return _fail("admin authority required", 403)
        return None

    @app.route("/category", methods=["GET"])
    def get_categories():
        return jsonify(list(store.categories.values()))

    @app.route("/category", methods=["POST"])
    def create_category():
        denied = require_admin()
        if denied:
            return denied
        name = (request.get_json(silent=True) or {}).get("name")
        if not name:
            return _fail("name is required", 400)
        with store.lock:
            now = _now()
            category = {"id": store.next_id("category"), "name": name, "createdAt": now, "updatedAt": now}
            store.categories[category["id"]] = category
        resp = jsonify(_envelope("category created"))
        resp.status_code = 201
        resp.headers["Location"] = f"/category/{category['id']}"
        return resp

    @app.route("/category/<int:category_id>", methods=["DELETE"])
    def delete_category(category_id: int):
        denied = require_admin()
        if denied:
            return denied
        with store.lock:
            if store.categories.pop(category_id, None) is None:
                return _fail("category not found", 404)
        return Response(status=204)

    # --- Orders ---------------------------------------------------------------

    @app.route("/order", methods=["POST"])
    def create_order():
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        body = request.get_json(silent=True) or {}
        details = body.get("orderDetails") or []
        if not details:
            return _fail("orderDetails must not be empty", 400)
        with store.lock:
            order = {
                "id": store.next_id("order"),
                "memberId": member["id"],
                "paymentMethod": body.get("paymentMethod", "CARD"),
                "paymentAmount": int(body.get("paymentAmount", 0)),
                "deliveryCost": int(body.get("deliveryCost", 0)),
                "status": "ORDER_PROCESSING",
                "orderDetails": [
                    {
                        "productId": int(d["productId"]),
                        "productCount": int(d["productCount"]),
                        "status": "PAYMENT_COMPLETED",
                    }
                    for d in details
                ],
            }
            store.orders[order["id"]] = order
        resp = jsonify(_envelope("order created"))
        resp.status_code = 201
        resp.headers["Location"] = f"/order/{order['id']}"
        return resp

    @app.route("/order", methods=["GET"])
    def get_orders():
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        return jsonify([o for o in store.orders.values() if o["memberId"] == member["id"]])

    def owned_order(order_id: int, member: dict) -> dict | None:
        order = store.orders.get(order_id)
        return order if order and order["memberId"] == member["id"] else None

    @app.route("/order/<int:order_id>", methods=["GET"])
    def get_order(order_id: int):
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        order = owned_order(order_id, member)
        if order is None:
            return _fail("order not found", 404)
        return jsonify(order)

    @app.route("/order/<int:order_id>", methods=["PATCH"])
    def cancel_order(order_id: int):
        member = current_member()
        if member is None:
            return _fail("authentication required", 401)
        with store.lock:
            order = owned_order(order_id, member)
            if order is None:
                return _fail("order not found", 404)
            if order["status"] == "ORDER_CANCELED":
                return _fail("order already canceled", 409)
            order["status"] = "ORDER_CANCELED"
            for detail in order["orderDetails"]:
                detail["status"] = "ORDER_CANCELED"
        return jsonify(_envelope("order canceled"))

    return app


def serve_in_background(app: Flask, host: str = "127.0.0.1", port: int = 0) -> BaseWSGIServer:
    """Start ``app`` on a daemon thread; stop it with ``server.shutdown()``."""
    server = make_server(host, port, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", "8080")))
