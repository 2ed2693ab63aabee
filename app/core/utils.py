"""
Utility functions for the application.
"""
from typing import Type, TypeVar, List, Any
from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)

async def model_to_schema(
    db_model: Any,
    schema_class: Type[T],
) -> T:
    """
    Convert a SQLAlchemy model instance to a Pydantic schema instance.

    Args:
        db_model: SQLAlchemy model instance
        schema_class: Pydantic schema class

    Returns:
        Instance of the Pydantic schema
    """
    # In Pydantic v2, use from_attributes=True for SQLAlchemy models
    return schema_class.model_validate(
        db_model,
        from_attributes=True
    )

async def models_to_schemas(
    db_models: List[Any],
    schema_class: Type[T],
) -> List[T]:
    """
    Convert a list of SQLAlchemy model instances to a list of Pydantic schema instances.

    Args:
        db_models: List of SQLAlchemy model instances
        schema_class: Pydantic schema class

    Returns:
        List of Pydantic schema instances
    """
    return [await model_to_schema(model, schema_class) for model in db_models]
