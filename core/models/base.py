from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase, dumps camelCase with `by_alias=True`."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
