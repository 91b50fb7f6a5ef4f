class RoomError(Exception):
    """Client error reported as {"ok": false, "error": code}."""

    def __init__(self, code: str, status_code: int = 400):
        super().__init__(code)
        self.code = code
        self.status_code = status_code
