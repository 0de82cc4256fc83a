from app.routers import auth, contacts, favorites, tags

__all__ = ["auth", "contacts", "favorites", "tags"]
