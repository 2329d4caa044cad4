from blade_api.modules.users.repositories.user_repository import UserRepository

__all__ = ["UserRepository"]
