from blade_api.modules.auth.entities.user_entity import UserEntity

__all__ = ["UserEntity"]
