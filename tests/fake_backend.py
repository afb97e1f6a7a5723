import asyncio
import json
import os
import sys
import tempfile
import unittest
from typing import Any, Dict, List, Optional, Tuple

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

import httpx  # noqa: E402

from api import http as api_http  # noqa: E402
from db import database as db_database  # noqa: E402

CREATED_AT = "2026-01-05T10:00:00+00:00"


def product_json(pid: str, name: str, price: float, stock: int = 5, **extra) -> Dict:
    data = {
        "_id": pid,
        "name": name,
        "price": price,
        "countInStock": stock,
        "description": f"{name} description",
        "image": f"/images/{pid}.jpg",
        "brand": "Acme",
        "category": "Electronics",
        "rating": 4.0,
        "numReviews": 0,
        "reviews": [],
        "createdAt": CREATED_AT,
    }
    data.update(extra)
    return data


def order_json(oid: str, user: Dict, items: List[Dict], **extra) -> Dict:
    data = {
        "_id": oid,
        "user": {"_id": user["_id"], "name": user["name"], "email": user["email"]},
        "orderItems": items,
        "shippingAddress": {
            "address": "1 Main St",
            "city": "Springfield",
            "postalCode": "12345",
            "country": "US",
        },
        "paymentMethod": "CashOnDelivery",
        "taxPrice": 0,
        "shippingPrice": 0,
        "totalPrice": sum(i["price"] * i["qty"] for i in items),
        "isPaid": False,
        "isDelivered": False,
        "createdAt": CREATED_AT,
    }
    data.update(extra)
    return data


class FakeBackend:
    """
    In-memory stand-in for the storefront REST API, served through
    httpx.MockTransport.

    failures: (method, path) -> exception instance to raise, or (status, body)
    gates: (method, path) -> asyncio.Event the request waits on before answering
    """

    def __init__(self) -> None:
        self.products: Dict[str, Dict] = {
            "A": product_json("A", "Alpha Phone", 10.0, brand="Acme"),
            "B": product_json(
                "B", "Beta Laptop", 900.0, brand="Bolt", category="Computers", rating=4.8
            ),
            "C": product_json("C", "Gamma Case", 25.0, stock=0, brand="Casey", rating=3.1),
        }
        self.users: Dict[str, Dict] = {
            "alice@example.com": {
                "_id": "u1",
                "name": "Alice",
                "email": "alice@example.com",
                "password": "secret",
                "isAdmin": False,
            },
            "root@example.com": {
                "_id": "u9",
                "name": "Root",
                "email": "root@example.com",
                "password": "admin",
                "isAdmin": True,
            },
        }
        self.wishlists: Dict[str, List[str]] = {"u1": ["B"]}
        self.orders: Dict[str, Dict] = {}
        self.requests: List[Tuple[str, str, Any]] = []
        self.auth: List[Optional[str]] = []
        self.failures: Dict[Tuple[str, str], Any] = {}
        self.gates: Dict[Tuple[str, str], asyncio.Event] = {}
        self._next_id = 1

    # ---------- helpers ----------

    def install(self) -> None:
        api_http.BASE_URL = "http://testserver"
        api_http.TRANSPORT = httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> List[Any]:
        return [body for m, p, body in self.requests if m == method and p == path]

    def _new_id(self, prefix: str) -> str:
        new_id = f"{prefix}{self._next_id}"
        self._next_id += 1
        return new_id

    def _session(self, user: Dict) -> Dict:
        return {
            "_id": user["_id"],
            "name": user["name"],
            "email": user["email"],
            "isAdmin": user["isAdmin"],
            "token": f"token-{user['_id']}",
        }

    def _user_for(self, request: httpx.Request) -> Optional[Dict]:
        auth = request.headers.get("Authorization", "")
        for user in self.users.values():
            if auth == f"Bearer token-{user['_id']}":
                return user
        return None

    def _wishlist(self, uid: str) -> List[Dict]:
        return [self.products[pid] for pid in self.wishlists.get(uid, [])]

    # ---------- transport ----------

    async def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, body))
        self.auth.append(request.headers.get("Authorization"))

        gate = self.gates.get((method, path))
        if gate is not None:
            await gate.wait()

        failure = self.failures.get((method, path))
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            status, payload = failure
            return httpx.Response(status, json=payload)

        status, payload = self.route(method, path, body, self._user_for(request))
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)

    def route(self, method: str, path: str, body: Any, user: Optional[Dict]):
        parts = path.strip("/").split("/")[1:]

        if parts == ["products"] and method == "GET":
            return 200, list(self.products.values())
        if parts[:1] == ["products"] and len(parts) == 2 and method == "GET":
            if parts[1] not in self.products:
                return 404, {"message": "Product not found"}
            return 200, self.products[parts[1]]
        if parts[:1] == ["products"] and parts[2:] == ["reviews"]:
            if user is None:
                return 401, {"message": "Not authorized"}
            prod = self.products[parts[1]]
            prod["reviews"].append(
                {
                    "_id": self._new_id("r"),
                    "name": user["name"],
                    "rating": body["rating"],
                    "comment": body["comment"],
                    "user": user["_id"],
                    "createdAt": CREATED_AT,
                }
            )
            prod["numReviews"] = len(prod["reviews"])
            return 201, {"message": "Review added"}

        if parts[:1] == ["auth"]:
            return self.route_auth(parts[1], body)

        if parts[:2] == ["users", "wishlist"]:
            if user is None:
                return 401, {"message": "Not authorized"}
            items = self.wishlists.setdefault(user["_id"], [])
            if parts[2:] == ["clear"]:
                items.clear()
                return 200, {"message": "Wishlist cleared"}
            if method == "GET":
                return 200, self._wishlist(user["_id"])
            if method == "POST" and body["productId"] not in items:
                items.append(body["productId"])
            if method == "DELETE" and body["productId"] in items:
                items.remove(body["productId"])
            return 200, {"wishlist": self._wishlist(user["_id"])}

        if parts == ["orders"] and method == "POST":
            if user is None:
                return 401, {"message": "Not authorized"}
            oid = f"O{len(self.orders) + 1}"
            self.orders[oid] = order_json(
                oid,
                user,
                body["orderItems"],
                shippingAddress=body["shippingAddress"],
                paymentMethod=body["paymentMethod"],
                totalPrice=body["totalPrice"],
            )
            return 201, self.orders[oid]
        if parts[:1] == ["orders"] and len(parts) == 2:
            if user is None:
                return 401, {"message": "Not authorized"}
            if parts[1] not in self.orders:
                return 404, {"message": "Order not found"}
            return 200, self.orders[parts[1]]
        if parts == ["users", "orders"]:
            if user is None:
                return 401, {"message": "Not authorized"}
            mine = [o for o in self.orders.values() if o["user"]["_id"] == user["_id"]]
            return 200, mine

        if parts[:1] == ["admin"]:
            return self.route_admin(method, parts[1:], body)

        if parts[:1] == ["ai"]:
            return self.route_ai(parts[1], body)

        return 404, {"message": f"No route for {method} {path}"}

    def route_auth(self, action: str, body: Any):
        if action == "login":
            user = self.users.get(body["email"])
            if user is None or user["password"] != body["password"]:
                return 401, {"message": "Invalid email or password"}
            return 200, self._session(user)
        if action == "register":
            if body["email"] in self.users:
                return 400, {"message": "User already exists"}
            user = {
                "_id": self._new_id("u"),
                "name": body["name"],
                "email": body["email"],
                "password": body["password"],
                "isAdmin": False,
            }
            self.users[body["email"]] = user
            return 201, self._session(user)
        if action == "google-login":
            user = self.users.setdefault(
                body["email"],
                {
                    "_id": "g-" + body["uid"],
                    "name": body["name"],
                    "email": body["email"],
                    "password": None,
                    "isAdmin": False,
                },
            )
            return 200, self._session(user)
        if action == "logout":
            return 200, {"message": "Logged out successfully"}
        return 404, {"message": "Unknown auth action"}

    def route_admin(self, method: str, parts: List[str], body: Any):
        if parts == ["stats"]:
            return 200, {
                "revenue": sum(o["totalPrice"] for o in self.orders.values()),
                "recentRevenue": 0,
                "orders": len(self.orders),
                "users": len(self.users),
                "products": len(self.products),
            }
        if parts == ["orders"]:
            return 200, list(self.orders.values())
        if parts[:1] == ["orders"] and parts[2:] == ["deliver"]:
            order = self.orders.get(parts[1])
            if order is None:
                return 404, {"message": "Order not found"}
            order["isDelivered"] = True
            order["deliveredAt"] = "2026-01-07T09:30:00+00:00"
            return 200, order
        if parts[:1] == ["products"]:
            if len(parts) == 1 and method == "GET":
                return 200, list(self.products.values())
            if len(parts) == 1 and method == "POST":
                pid = self._new_id("P")
                self.products[pid] = product_json(
                    pid,
                    body["name"],
                    body["price"],
                    stock=body["countInStock"],
                    brand=body["brand"],
                    category=body["category"],
                    description=body["description"],
                )
                return 201, self.products[pid]
            pid = parts[1]
            if pid not in self.products:
                return 404, {"message": "Product not found"}
            if method == "GET":
                return 200, self.products[pid]
            if method == "PUT":
                self.products[pid].update(body)
                return 200, self.products[pid]
            if method == "DELETE":
                del self.products[pid]
                return 200, {"message": "Product removed"}
        if parts[:1] == ["users"]:
            if len(parts) == 1:
                return 200, [
                    {k: u[k] for k in ("_id", "name", "email", "isAdmin")}
                    for u in self.users.values()
                ]
            for email, u in list(self.users.items()):
                if u["_id"] == parts[1]:
                    del self.users[email]
                    return 200, {"message": "User removed"}
            return 404, {"message": "User not found"}
        return 404, {"message": "Unknown admin route"}

    def route_ai(self, feature: str, body: Any):
        if feature == "chat":
            return 200, {"reply": f"You asked: {body['message']}"}
        if feature == "sentiment":
            mood = "Positive" if "great" in body["reviewText"].lower() else "Neutral"
            return 200, {"overallSentiment": mood, "confidence": 0.9}
        if feature == "recommend":
            return 200, [self.products["B"]]
        if feature == "generate":
            return 200, {"description": f"<p>The {body['name']} is <b>great</b>.</p>"}
        if feature == "visual-search":
            return 200, {"keywords": ["phone", "black"]}
        return 404, {"message": "Unknown AI feature"}


class StorefrontTestCase(unittest.IsolatedAsyncioTestCase):
    """
    Points the api package at a fresh FakeBackend and device storage at a
    temporary sqlite file.
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "device.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

        self.backend = FakeBackend()
        self.backend.install()

    def tearDown(self):
        api_http.TRANSPORT = None
        self.temp_dir.cleanup()
