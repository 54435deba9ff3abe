from pydantic import BaseModel


class Base(BaseModel):
    @classmethod
    def load(cls, obj):
        return cls.model_validate(obj)

    def dump(self, exclude_defaults: bool = True):
        return self.model_dump(mode="json", by_alias=True, exclude_defaults=exclude_defaults)
