WEATHER_TEMPLATE = """Provide current weather information for {city}.
Include temperature, conditions, humidity, and wind speed.
Make realistic estimates based on typical weather patterns.

{format}
"""

BOOKS_TEMPLATE = """Recommend {count} popular {genre} books.
Include title, author, year published, and a brief description for each.

{format}
"""

RECIPE_TEMPLATE = """Provide a detailed recipe for {dish}.
Include ingredients with measurements and step-by-step cooking instructions.
Also include prep time, cook time, and servings.

{format}
"""
