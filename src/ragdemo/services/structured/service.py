from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel

from ragdemo.llm import LLMClient
from ragdemo.logger import get_logger
from ragdemo.services.structured.converter import OutputConverter, OutputParseError
from ragdemo.services.structured.prompts import BOOKS_TEMPLATE, RECIPE_TEMPLATE, WEATHER_TEMPLATE
from ragdemo.services.structured.schemas import BookRecommendation, RecipeResponse, WeatherResponse

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class StructuredOutputService:
    def __init__(self, llm_client: LLMClient) -> None:
        self._llm_client = llm_client

    def weather(self, city: str) -> WeatherResponse:
        return self._generate(WEATHER_TEMPLATE, WeatherResponse, city=city)

    def books(self, genre: str, count: int = 3) -> BookRecommendation:
        if count <= 0:
            raise ValueError("count must be > 0")
        return self._generate(BOOKS_TEMPLATE, BookRecommendation, genre=genre, count=str(count))

    def recipe(self, dish: str) -> RecipeResponse:
        return self._generate(RECIPE_TEMPLATE, RecipeResponse, dish=dish)

    def _generate(self, template: str, model_cls: type[ModelT], **params: str) -> ModelT:
        converter = OutputConverter(model_cls)
        prompt = template.format(format=converter.get_format(), **params)
        result = self._llm_client.complete(prompt)
        try:
            return converter.convert(result.answer)
        except OutputParseError:
            logger.warning("unparseable %s output from model=%s", model_cls.__name__, result.model)
            raise
