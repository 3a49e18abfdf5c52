# ABOUTME: Pydantic models for the AI output contracts (report, plan, planetary status) and grounding sources.
# ABOUTME: Wire names are camelCase; models accept either camelCase or snake_case on input.

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    CLIMATE_CHANGE = "Climate Change"
    WATER = "Water"
    AIR = "Air"
    NOISE_GLOBAL = "Noise & Global Change"
    VISION = "Eco Vision"


class Section(str, Enum):
    CLIMATE = "Climate"
    WATER = "Water"
    AIR = "Air"
    NOISE = "Noise"
    VISION = "Vision"


class ImageSize(str, Enum):
    ONE_K = "1K"
    TWO_K = "2K"
    FOUR_K = "4K"


CATEGORIES_BY_SECTION: dict[Section, Category] = {
    Section.CLIMATE: Category.CLIMATE_CHANGE,
    Section.WATER: Category.WATER,
    Section.AIR: Category.AIR,
    Section.NOISE: Category.NOISE_GLOBAL,
    Section.VISION: Category.VISION,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GroundingSource(_CamelModel):
    """A citation (title + URL) attached by search grounding."""

    title: str
    uri: str


class GroundedResult(_CamelModel):
    """Base for structured results: schema fields plus the grounding sources found for the call."""

    sources: list[GroundingSource] = Field(default_factory=list)


class EnvironmentalReport(GroundedResult):
    """Structured research report for one environmental problem."""

    topic: str
    summary: str
    introduction: str
    explanation: str
    background: str
    causes: list[str]
    impacts: list[str]
    solutions: list[str]
    examples: list[str]
    prevention_tips: list[str]
    conclusion: str
    visual_prompt: str = Field(description="English prompt for a scientific diagram.")
    category: Category
    section: Section


class PlanDay(_CamelModel):
    day: int
    task: str
    impact: str


class SustainabilityPlan(GroundedResult):
    """Personalized 7-day sustainability plan."""

    title: str
    days: list[PlanDay]


class NewsItem(_CamelModel):
    title: str = ""
    description: str = ""
    url: str = ""

    @field_validator("title", "description", "url", mode="before")
    @classmethod
    def _null_to_empty(cls, value):
        return "" if value is None else value


class EcoStatus(GroundedResult):
    """Local and global environmental status with recent news."""

    local_temp: str
    local_condition: str
    global_avg_temp: str
    news: list[NewsItem]
