"""Helpers that turn external metadata into draft movie fields."""

import re

from kinoteka.schemas.candidate import CandidateMovie
from kinoteka.schemas.movie import MovieDraft, clamp_rating

PLACEHOLDER_RATING = 0.1

_HOURS = re.compile(r"(\d+)\s*ч")
_MINUTES = re.compile(r"(\d+)\s*мин")
_LEADING_INT = re.compile(r"^\s*(\d+)")
_LEADING_FLOAT = re.compile(r"^\s*(\d+(?:[.,]\d+)?)")


def parse_duration(film_length: str | None) -> int | None:
    """
    Parse a film length into minutes.

    Accepted forms, tried in this order:
    - "2:15" (hours:minutes) → 135
    - "1ч 30мин" → 90
    - "142" (leading integer minutes) → 142

    Args:
        film_length: Raw length from the metadata API

    Returns:
        Positive number of minutes, or None when nothing usable was found
    """
    if not film_length:
        return None

    minutes: int | None = None
    if ":" in film_length:
        hours_part, _, minutes_part = film_length.partition(":")
        hours_match = _LEADING_INT.match(hours_part)
        minutes_match = _LEADING_INT.match(minutes_part)
        if hours_match and minutes_match:
            minutes = int(hours_match.group(1)) * 60 + int(minutes_match.group(1))
    elif "ч" in film_length:
        hours_match = _HOURS.search(film_length)
        minutes_match = _MINUTES.search(film_length)
        minutes = (int(hours_match.group(1)) if hours_match else 0) * 60 + (
            int(minutes_match.group(1)) if minutes_match else 0
        )
    else:
        match = _LEADING_INT.match(film_length)
        if match:
            minutes = int(match.group(1))

    if minutes is None or minutes <= 0:
        return None
    return minutes


def synthesize_rating(rating: str | None, vote_count: str | None) -> float:
    """
    Pick a draft rating from the source rating and vote count.

    A missing rating ("null", "0" or unparseable) on a film that has votes
    gets a 0.1 placeholder so it still passes the non-zero check on save.
    """
    if rating and rating not in ("null", "0"):
        match = _LEADING_FLOAT.match(rating)
        if match:
            return clamp_rating(float(match.group(1).replace(",", ".")))

    votes = _LEADING_INT.match(vote_count or "")
    if votes and int(votes.group(1)) > 0:
        return PLACEHOLDER_RATING
    return 0.0


def synthesize_description(
    title: str, year: str | None, genres: list[str], countries: list[str]
) -> str:
    """Describe a film from its tags when the source has no description."""
    genre_text = f"Genre: {', '.join(genres)}. " if genres else ""
    country_text = f"Country: {', '.join(countries)}." if countries else ""
    year_text = f" ({year})" if year else ""
    return f'Film "{title}"{year_text}. {genre_text}{country_text}'.strip()


def candidate_to_draft(candidate: CandidateMovie) -> MovieDraft:
    """Map an external search result onto a new draft."""
    title = candidate.display_title
    description = candidate.description
    if not description or not description.strip():
        description = synthesize_description(
            title, candidate.year, candidate.genres, candidate.countries
        )

    year_match = _LEADING_INT.match(candidate.year or "")
    return MovieDraft(
        title=title,
        release_year=int(year_match.group(1)) if year_match else None,
        duration_minutes=parse_duration(candidate.film_length),
        description=description.strip(),
        rating=synthesize_rating(candidate.rating, candidate.rating_vote_count),
    )
