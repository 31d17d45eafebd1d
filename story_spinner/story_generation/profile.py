"""
Structured representation of the story preferences gathered by the wizard.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, TypeVar

from story_spinner.common.errors import PreferencesValidationError

_E = TypeVar("_E", bound="LabeledEnum")


class LabeledEnum(Enum):
    """
    Closed enumeration whose members carry a fixed, human-readable label.
    """

    @property
    def label(self) -> str:
        return _LABELS[type(self)][self]

    @classmethod
    def parse(cls: type[_E], value: Any) -> _E:
        """
        Accept a member, its name (``sci_fi``), or its display label (``Sci-fi``).
        """
        if isinstance(value, cls):
            return value

        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower(), member.label.lower()):
                return member

        choices = ", ".join(member.label for member in cls)
        raise ValueError(f"Unknown {cls.__name__} {value!r}. Expected one of: {choices}.")


class Gender(LabeledEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Genre(LabeledEnum):
    SCI_FI = "sci_fi"
    FANTASY = "fantasy"
    SPORTS = "sports"
    FICTION = "fiction"
    DRAMA = "drama"
    SUSPENSE = "suspense"
    KID_FRIENDLY_HORROR = "kid_friendly_horror"


class Season(LabeledEnum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class FashionStyle(LabeledEnum):
    CASUAL = "casual"
    SPORTY = "sporty"
    ELEGANT = "elegant"
    TRENDY = "trendy"
    VINTAGE = "vintage"
    BOHEMIAN = "bohemian"


_LABELS: dict[type, dict[Any, str]] = {
    Gender: {
        Gender.MALE: "Male",
        Gender.FEMALE: "Female",
        Gender.OTHER: "Other",
    },
    Genre: {
        Genre.SCI_FI: "Sci-fi",
        Genre.FANTASY: "Fantasy",
        Genre.SPORTS: "Sports",
        Genre.FICTION: "Fiction",
        Genre.DRAMA: "Drama",
        Genre.SUSPENSE: "Suspense",
        Genre.KID_FRIENDLY_HORROR: "Scary / Kid Friendly Horror",
    },
    Season: {
        Season.SPRING: "Spring",
        Season.SUMMER: "Summer",
        Season.FALL: "Fall",
        Season.WINTER: "Winter",
    },
    FashionStyle: {
        FashionStyle.CASUAL: "Casual",
        FashionStyle.SPORTY: "Sporty",
        FashionStyle.ELEGANT: "Elegant",
        FashionStyle.TRENDY: "Trendy",
        FashionStyle.VINTAGE: "Vintage",
        FashionStyle.BOHEMIAN: "Bohemian",
    },
}


def _coerce_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class StoryPreferences:
    """
    Snapshot of everything the parent chose for the story.

    Attributes
    ----------
    child_name:
        Child's given name. Required before a run may start.
    child_age:
        Age as entered in the form (free text). Required before a run may start.
    nickname:
        Optional familiar name; replaces ``child_name`` everywhere the story shows a name.
    gender, genre, favorite_season, fashion_style:
        Closed choices from the wizard.
    favorite_video_game:
        Free text, may be empty.
    """

    child_name: str = ""
    child_age: str = ""
    nickname: str = ""
    gender: Gender = Gender.OTHER
    genre: Genre = Genre.FANTASY
    favorite_season: Season = Season.SPRING
    favorite_video_game: str = ""
    fashion_style: FashionStyle = FashionStyle.CASUAL

    @property
    def display_name(self) -> str:
        nickname = self.nickname.strip()
        return nickname if nickname else self.child_name.strip()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoryPreferences":
        """
        Build preferences from a dict-like object (e.g., parsed JSON/YAML).
        """
        return cls(
            child_name=_coerce_str(data.get("child_name") or data.get("name")),
            child_age=_coerce_str(data.get("child_age") or data.get("age")),
            nickname=_coerce_str(data.get("nickname")),
            gender=Gender.parse(data.get("gender") or Gender.OTHER),
            genre=Genre.parse(data.get("genre") or Genre.FANTASY),
            favorite_season=Season.parse(
                data.get("favorite_season") or data.get("season") or Season.SPRING
            ),
            favorite_video_game=_coerce_str(
                data.get("favorite_video_game") or data.get("video_game")
            ),
            fashion_style=FashionStyle.parse(data.get("fashion_style") or FashionStyle.CASUAL),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "child_name": self.child_name,
            "child_age": self.child_age,
            "nickname": self.nickname,
            "gender": self.gender.label,
            "genre": self.genre.label,
            "favorite_season": self.favorite_season.label,
            "favorite_video_game": self.favorite_video_game,
            "fashion_style": self.fashion_style.label,
        }

    def validation_message(self) -> str | None:
        if not self.child_name.strip():
            return "Please enter your child's name"
        if not self.child_age.strip():
            return "Please enter your child's age"
        return None

    def is_valid(self) -> bool:
        return self.validation_message() is None

    def validate(self) -> None:
        message = self.validation_message()
        if message is not None:
            raise PreferencesValidationError(message)

    def context_bullets(self) -> list[str]:
        """
        Produce bullet-friendly lines describing the requested story, for prompt conditioning.
        """
        return [
            f"Main character name: {self.display_name}",
            f"Character age: {self.child_age}",
            f"Gender: {self.gender.label}",
            f"Genre: {self.genre.label}",
            f"Setting season: {self.favorite_season.label}",
            f"Video game reference: {self.favorite_video_game}",
            f"Fashion style: {self.fashion_style.label}",
        ]

    def summary_for_prompt(self) -> str:
        """
        Format the preferences as a readable block suitable for LLM prompting.
        """
        return "\n".join(f"- {line}" for line in self.context_bullets())
