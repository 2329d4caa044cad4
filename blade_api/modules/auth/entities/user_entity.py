from sqlalchemy import Column, Integer, String

from blade_api.common.entities.base import BaseEntity
from blade_api.common.enums.user_role import UserRole
from blade_api.common.mixins.soft_delete_mixin import SoftDeleteMixin


class UserEntity(SoftDeleteMixin, BaseEntity):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value, server_default=UserRole.USER.value)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}', role='{self.role}')>"
