# src/api/endpoints.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from api import models
from api.http import request
from api.models import parse


# ---------------------------
# Catalog
# ---------------------------


async def list_products() -> List[models.Product]:
    """All products, in the backend's featured order."""
    body = await request("GET", "/api/products", fallback="Failed to load products")
    return parse(List[models.Product], body)


async def get_product(product_id: str) -> models.Product:
    """A single product with its embedded reviews."""
    body = await request(
        "GET", f"/api/products/{product_id}", fallback="Product not found"
    )
    return parse(models.Product, body)


async def submit_review(
    token: str, product_id: str, rating: int, comment: str, image: str = ""
) -> None:
    await request(
        "POST",
        f"/api/products/{product_id}/reviews",
        token=token,
        json={"rating": rating, "comment": comment, "image": image},
        fallback="Error submitting review",
    )


# ---------------------------
# Auth & Registration
# ---------------------------


async def login(email: str, password: str) -> models.UserInfo:
    body = await request(
        "POST",
        "/api/auth/login",
        json={"email": email, "password": password},
        fallback="Login failed",
    )
    return parse(models.UserInfo, body)


async def google_login(identity: models.FederatedIdentity) -> models.UserInfo:
    """Exchange a federated identity for a backend session."""
    body = await request(
        "POST",
        "/api/auth/google-login",
        json=identity.to_json(),
        fallback="Google login failed",
    )
    return parse(models.UserInfo, body)


async def register(name: str, email: str, password: str) -> models.UserInfo:
    body = await request(
        "POST",
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
        fallback="Registration failed",
    )
    return parse(models.UserInfo, body)


async def logout() -> None:
    await request("POST", "/api/auth/logout", fallback="Logout failed")


# ---------------------------
# Wishlist
# ---------------------------


async def get_wishlist(token: str) -> List[models.Product]:
    body = await request(
        "GET", "/api/users/wishlist", token=token, fallback="Failed to load wishlist"
    )
    return parse(List[models.Product], body)


async def add_to_wishlist(token: str, product_id: str) -> List[models.Product]:
    """Returns the server's canonical wishlist after the change."""
    body = await request(
        "POST",
        "/api/users/wishlist",
        token=token,
        json={"productId": product_id},
        fallback="Failed to add to wishlist",
    )
    return parse(models.WishlistReply, body).wishlist


async def remove_from_wishlist(token: str, product_id: str) -> List[models.Product]:
    """Returns the server's canonical wishlist after the change."""
    body = await request(
        "DELETE",
        "/api/users/wishlist",
        token=token,
        json={"productId": product_id},
        fallback="Failed to remove from wishlist",
    )
    return parse(models.WishlistReply, body).wishlist


async def clear_wishlist(token: str) -> None:
    await request(
        "DELETE",
        "/api/users/wishlist/clear",
        token=token,
        fallback="Failed to clear wishlist",
    )


# ---------------------------
# Orders
# ---------------------------


async def place_order(token: str, payload: Dict[str, Any]) -> models.Order:
    body = await request(
        "POST", "/api/orders", token=token, json=payload, fallback="Error placing order"
    )
    return parse(models.Order, body)


async def get_order(token: str, order_id: str) -> models.Order:
    body = await request(
        "GET", f"/api/orders/{order_id}", token=token, fallback="Order not found"
    )
    return parse(models.Order, body)


async def list_my_orders(token: str) -> List[models.Order]:
    """Orders of the logged-in user, newest first as the backend returns them."""
    body = await request(
        "GET", "/api/users/orders", token=token, fallback="Failed to load orders"
    )
    return parse(List[models.Order], body)


# ---------------------------
# Admin
# ---------------------------


async def admin_stats(token: Optional[str] = None) -> models.AdminStats:
    body = await request(
        "GET", "/api/admin/stats", token=token, fallback="Failed to load stats"
    )
    return parse(models.AdminStats, body)


async def admin_list_orders(token: Optional[str] = None) -> List[models.Order]:
    body = await request(
        "GET", "/api/admin/orders", token=token, fallback="Failed to load orders"
    )
    return parse(List[models.Order], body)


async def admin_mark_delivered(
    order_id: str, token: Optional[str] = None
) -> models.Order:
    """Flip the delivered flag; returns the updated order."""
    body = await request(
        "PUT",
        f"/api/admin/orders/{order_id}/deliver",
        token=token,
        fallback="Failed to update order",
    )
    return parse(models.Order, body)


async def admin_list_products(token: Optional[str] = None) -> List[models.Product]:
    body = await request(
        "GET", "/api/admin/products", token=token, fallback="Failed to load products"
    )
    return parse(List[models.Product], body)


async def admin_get_product(
    product_id: str, token: Optional[str] = None
) -> models.Product:
    body = await request(
        "GET",
        f"/api/admin/products/{product_id}",
        token=token,
        fallback="Product not found",
    )
    return parse(models.Product, body)


async def admin_save_product(
    payload: models.ProductPayload,
    product_id: Optional[str] = None,
    token: Optional[str] = None,
) -> models.Product:
    """
    Create a product (POST) when product_id is None, otherwise update it (PUT).
    """
    if product_id is None:
        method, path = "POST", "/api/admin/products"
    else:
        method, path = "PUT", f"/api/admin/products/{product_id}"
    body = await request(
        method,
        path,
        token=token,
        json=payload.model_dump(by_alias=True),
        fallback="Failed to save product",
    )
    return parse(models.Product, body)


async def admin_delete_product(product_id: str, token: Optional[str] = None) -> None:
    await request(
        "DELETE",
        f"/api/admin/products/{product_id}",
        token=token,
        fallback="Failed to delete product",
    )


async def admin_list_users(token: Optional[str] = None) -> List[models.AdminUser]:
    body = await request(
        "GET", "/api/admin/users", token=token, fallback="Failed to load users"
    )
    return parse(List[models.AdminUser], body)


async def admin_delete_user(user_id: str, token: Optional[str] = None) -> None:
    await request(
        "DELETE",
        f"/api/admin/users/{user_id}",
        token=token,
        fallback="Failed to delete user",
    )


# ---------------------------
# AI features (opaque remote inference)
# ---------------------------


async def ai_chat(
    message: str,
    history: Sequence[Dict[str, Any]],
    cart_items: Sequence[Dict[str, Any]],
) -> str:
    body = await request(
        "POST",
        "/api/ai/chat",
        json={
            "message": message,
            "history": list(history),
            "context": {"cartItems": list(cart_items)},
        },
        fallback="Sorry, I encountered an error on the server.",
    )
    return parse(models.ChatReply, body).reply


async def ai_visual_search(image_data_url: str) -> models.VisualSearchResult:
    body = await request(
        "POST",
        "/api/ai/visual-search",
        json={"imageBase64": image_data_url},
        fallback="Visual search failed. Please try again.",
    )
    return parse(models.VisualSearchResult, body)


async def ai_sentiment(review_text: str) -> models.Sentiment:
    body = await request(
        "POST",
        "/api/ai/sentiment",
        json={"reviewText": review_text},
        fallback="Sentiment analysis failed",
    )
    return parse(models.Sentiment, body)


async def ai_recommend(
    preferences: Dict[str, Any], viewed_products: Sequence[str]
) -> List[models.Product]:
    body = await request(
        "POST",
        "/api/ai/recommend",
        json={"userPreferences": preferences, "viewedProducts": list(viewed_products)},
        fallback="Failed to load recommendations",
    )
    return parse(List[models.Product], body)


async def ai_generate_description(
    name: str, specs: str, tone: str = "Professional"
) -> str:
    body = await request(
        "POST",
        "/api/ai/generate",
        json={"name": name, "specs": specs, "tone": tone},
        fallback="Failed to generate AI description",
    )
    return parse(models.GeneratedDescription, body).description
