from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

IMAGE_URL_TEMPLATE = "https://farm{farm}.staticflickr.com/{server}/{id}_{secret}_b.jpg"


class Photo(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    secret: str
    server: str
    farm: int
    description: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("photo id must not be empty")
        return text

    @property
    def image_url(self) -> str:
        return IMAGE_URL_TEMPLATE.format(
            farm=self.farm,
            server=self.server,
            id=self.id,
            secret=self.secret,
        )

    @property
    def has_description(self) -> bool:
        return self.description is not None

    def with_description(self, description: str) -> Photo:
        return self.model_copy(update={"description": description})
