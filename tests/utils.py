"""Small helpers shared by the test modules."""

API = "/api"


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
