class UserAlreadyExistsError(ValueError):
    """Username or email is already taken by another user."""

    def __init__(self, field: str):
        super().__init__(f"{field} already exists")
        self.field = field


class UserNotFoundError(LookupError):
    def __init__(self, user_id: int):
        super().__init__(f"User with ID {user_id} not found")
        self.user_id = user_id
