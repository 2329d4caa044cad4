from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from blade_api.common.resilience import retry_db_operation

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    model: type[ModelType] | None = None

    def __init__(self, session: Session):
        self.session = session

    def _ensure_model(self) -> type[ModelType]:
        if self.model is None:
            raise RuntimeError("Model not set. Subclasses must define the 'model' attribute.")
        return self.model

    def _build_query(self, include_deleted: bool = False):
        model = self._ensure_model()
        query = self.session.query(model)

        if not include_deleted and hasattr(model, "is_deleted"):
            query = query.filter(model.is_deleted.is_(False))

        return query

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def get_by_id(self, entity_id: int, include_deleted: bool = False) -> ModelType | None:
        model = self._ensure_model()
        return self._build_query(include_deleted=include_deleted).filter(model.id == entity_id).first()

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def create(self, entity: ModelType) -> ModelType:
        self.session.add(entity)
        self.session.flush()
        self.session.refresh(entity)
        return entity

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def update(self, instance: ModelType, data: dict[str, Any]) -> ModelType:
        for key, value in data.items():
            if not hasattr(instance, key):
                raise AttributeError(f"{type(instance).__name__} has no attribute '{key}'")
            setattr(instance, key, value)

        self.session.flush()
        self.session.refresh(instance)
        return instance

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def delete(self, entity: ModelType) -> None:
        """Removes the row physically. Use ``soft_delete`` to keep it."""
        self.session.delete(entity)
        self.session.flush()

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def soft_delete(self, entity: ModelType) -> ModelType:
        entity.soft_delete()
        self.session.flush()
        return entity

