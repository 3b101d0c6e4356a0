from ragdemo.services.structured.converter import OutputConverter, OutputParseError
from ragdemo.services.structured.schemas import (
    Book,
    BookRecommendation,
    RecipeResponse,
    WeatherResponse,
)
from ragdemo.services.structured.service import StructuredOutputService

__all__ = [
    "Book",
    "BookRecommendation",
    "OutputConverter",
    "OutputParseError",
    "RecipeResponse",
    "StructuredOutputService",
    "WeatherResponse",
]
