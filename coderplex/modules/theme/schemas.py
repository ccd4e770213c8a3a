from pydantic import BaseModel
from typing import Literal

Theme = Literal["light", "dark"]


class ThemeUpdate(BaseModel):
    theme: Theme


class ThemeResponse(BaseModel):
    theme: Theme
    source: Literal["cookie", "client-hint", "default"]
