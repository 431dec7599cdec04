from app.routers import auth, families, health, invitations, locations

__all__ = [
    "health",
    "auth",
    "families",
    "invitations",
    "locations",
]
