"""공통 Pydantic 스키마 기반 클래스.

Common Pydantic base classes.
JSON keys are camelCase on the wire; request bodies also accept the
snake_case field names.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase 별칭을 사용하는 기본 모델.

    Base model with camelCase aliases and ORM attribute loading.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
