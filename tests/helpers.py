def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
