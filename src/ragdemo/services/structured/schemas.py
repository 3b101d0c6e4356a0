from pydantic import BaseModel, Field


class WeatherResponse(BaseModel):
    city: str
    temperature: float
    conditions: str
    humidity: int = Field(ge=0, le=100)
    wind_speed: float
    unit: str


class Book(BaseModel):
    title: str
    author: str
    year: int
    description: str


class BookRecommendation(BaseModel):
    genre: str
    books: list[Book]


class RecipeResponse(BaseModel):
    name: str
    prep_time: str
    cook_time: str
    servings: int = Field(ge=1)
    ingredients: list[str]
    instructions: list[str]
