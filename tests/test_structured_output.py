import json

import pytest

from fakes import RecordingLLMClient
from ragdemo.services.structured import (
    BookRecommendation,
    OutputConverter,
    OutputParseError,
    StructuredOutputService,
    WeatherResponse,
)

WEATHER_JSON = {
    "city": "San Francisco",
    "temperature": 17.5,
    "conditions": "Foggy",
    "humidity": 80,
    "wind_speed": 12.0,
    "unit": "celsius",
}


def test_format_embeds_json_schema_of_model() -> None:
    instructions = OutputConverter(WeatherResponse).get_format()

    assert "JSON Schema" in instructions
    assert '"wind_speed"' in instructions
    assert '"humidity"' in instructions


def test_convert_parses_plain_json() -> None:
    weather = OutputConverter(WeatherResponse).convert(json.dumps(WEATHER_JSON))

    assert weather == WeatherResponse(**WEATHER_JSON)


def test_convert_strips_code_fences_and_prose() -> None:
    text = "Sure! Here it is:\n```json\n" + json.dumps(WEATHER_JSON) + "\n```\nEnjoy."

    weather = OutputConverter(WeatherResponse).convert(text)

    assert weather.city == "San Francisco"
    assert weather.wind_speed == 12.0


def test_convert_rejects_schema_mismatch() -> None:
    payload = dict(WEATHER_JSON, humidity="very")

    with pytest.raises(OutputParseError, match="WeatherResponse"):
        OutputConverter(WeatherResponse).convert(json.dumps(payload))


def test_convert_rejects_text_without_json() -> None:
    with pytest.raises(OutputParseError, match="no JSON object"):
        OutputConverter(WeatherResponse).convert("It is sunny today.")


def test_service_prompts_with_format_and_parses_answer() -> None:
    answer = json.dumps(
        {
            "genre": "science fiction",
            "books": [
                {"title": "Dune", "author": "Frank Herbert", "year": 1965, "description": "Spice."},
                {"title": "Neuromancer", "author": "William Gibson", "year": 1984, "description": "Cyber."},
            ],
        }
    )
    llm_client = RecordingLLMClient(answer=answer)

    result = StructuredOutputService(llm_client).books("science fiction", 2)

    assert isinstance(result, BookRecommendation)
    assert [book.title for book in result.books] == ["Dune", "Neuromancer"]
    prompt = llm_client.prompts[0]
    assert prompt.startswith("Recommend 2 popular science fiction books.")
    assert "JSON Schema" in prompt


def test_service_books_rejects_non_positive_count() -> None:
    with pytest.raises(ValueError, match="count"):
        StructuredOutputService(RecordingLLMClient()).books("poetry", 0)
