"""
Prompt text for the two AI stages.

The search prompt carries retrieval instructions only; ranking and the
JSON schema are left to the generation prompt.
"""

import json
from typing import Dict, Iterable, List, Sequence

from cinemate.core.pipeline.models import CandidateItem, FilterSpec, RatedTitle, TasteProfile

LANGUAGE_DESCRIPTIONS: Dict[str, str] = {
    'English': 'Hollywood/English',
    'Hindi': 'Bollywood/Hindi',
    'Tamil': 'Kollywood/Tamil',
    'Telugu': 'Tollywood/Telugu',
    'Kannada': 'Sandalwood/Kannada',
    'Malayalam': 'Mollywood/Malayalam',
    'Korean': 'Korean Cinema',
    'Japanese': 'Japanese Cinema',
    'Italian': 'Italian Cinema',
}

SEARCH_SYSTEM_PROMPT = (
    "You are a movie search expert with access to real-time movie databases. "
    "Provide accurate, current movie information with detailed metadata."
)

SCHEMA_EXAMPLE = {
    "recommendations": [
        {
            "title": "Movie Title",
            "originalTitle": "Original Title (if different)",
            "year": 2023,
            "reason": "Specific reason based on their ratings and taste",
            "matchPercentage": 94,
            "overview": "Compelling 2-3 sentence plot summary",
            "language": "en",
            "genres": ["Drama", "Thriller"],
            "runtime": 142,
            "imdbRating": 8.1,
            "tmdbId": None,
        }
    ]
}


def describe_languages(languages: Iterable[str]) -> str:
    """Render languages the way cinemas are usually named ("Bollywood/Hindi")."""
    described = [LANGUAGE_DESCRIPTIONS.get(lang, lang) for lang in languages]
    return ", ".join(described) or "Any"


def _titles(rated: Sequence[RatedTitle]) -> str:
    return "\n".join(r.label() for r in rated) or "None yet"


def render_profile(profile: TasteProfile) -> str:
    return (
        f"MOVIES THEY LOVED:\n{_titles(profile.loved)}\n\n"
        f"MOVIES THEY ENJOYED:\n{_titles(profile.enjoyed)}\n\n"
        f"MOVIES THEY DISLIKED (avoid similar):\n{_titles(profile.disliked)}"
    )


def render_constraints(filters: FilterSpec) -> List[str]:
    """One clause per active filter."""
    clauses = []
    if filters.year_from and filters.year_to:
        clauses.append(f"Release year: {filters.year_from} to {filters.year_to}")
    elif filters.year_from:
        clauses.append(f"Released in {filters.year_from} or later")
    elif filters.year_to:
        clauses.append(f"Released in {filters.year_to} or earlier")
    if filters.languages:
        clauses.append(f"Languages/Cinema: {describe_languages(filters.languages)}")
    if filters.genres:
        clauses.append(f"Preferred genres: {', '.join(filters.genres)}")
    if filters.min_imdb_rating:
        clauses.append(f"Minimum IMDb rating: {filters.min_imdb_rating:g}/10")
    if filters.min_box_office:
        clauses.append(f"Minimum box office: ${filters.min_box_office:g}M worldwide")
    if filters.max_budget:
        clauses.append(f"Maximum budget: ${filters.max_budget:g}M")
    return clauses


def build_search_prompt(profile: TasteProfile, filters: FilterSpec) -> str:
    constraints = "\n".join(f"- {clause}" for clause in render_constraints(filters))
    return f"""Find {filters.count} movie recommendations for someone who:

{render_profile(profile)}

SEARCH CRITERIA:
{constraints or "- None"}

For each movie, provide:
1. Title (original and English if different)
2. Release year
3. IMDb rating and vote count
4. Runtime
5. Languages
6. Genres
7. Plot summary (2-3 sentences)
8. Box office performance
9. Why this movie would suit the user

Do not include movies listed above that they have already rated."""


def render_checklist(items: Sequence[CandidateItem]) -> str:
    return "\n".join(
        f"- {item.title} ({item.year})" if item.year else f"- {item.title}" for item in items
    )


def build_ranking_messages(
    candidates_text: str,
    profile: TasteProfile,
    filters: FilterSpec,
    candidate_items: Sequence[CandidateItem] = (),
) -> List[Dict[str, str]]:
    constraints = "\n".join(f"- {clause}" for clause in render_constraints(filters))
    system_prompt = f"""You are CineMate's taste analysis expert. You receive raw movie data and apply personalized taste logic.

Your task: Transform the movie data into EXACTLY {filters.count} structured JSON recommendations, ranked by how much this user will like them.

CRITICAL INSTRUCTIONS:
1. Return EXACTLY {filters.count} recommendations, best match first
2. Prioritize movies similar to the ones they LOVED and ENJOYED
3. Weight genre and language overlap with their highest-rated movies
4. AVOID movies similar to the ones they DISLIKED
5. Never recommend a movie they have already rated
6. Respect the request constraints
7. matchPercentage is your predicted affinity from 0 to 100
8. Set tmdbId only if you are certain of it, otherwise null

Return ONLY valid JSON with this EXACT schema:
{json.dumps(SCHEMA_EXAMPLE, indent=2)}"""

    checklist = ""
    if candidate_items:
        checklist = (
            "\nTITLES FOUND IN THE SEARCH DATA (choose from these first):\n"
            f"{render_checklist(candidate_items)}\n"
        )

    user_prompt = f"""RAW MOVIE DATA FROM SEARCH:
{candidates_text}
{checklist}
USER'S TASTE PROFILE:
{render_profile(profile)}

REQUEST CONSTRAINTS:
{constraints or "- None"}

Transform the movie data into EXACTLY {filters.count} JSON recommendations.
Return ONLY valid JSON (no explanations)."""

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def build_correction_message(error: str, count: int) -> Dict[str, str]:
    return {
        "role": "user",
        "content": (
            f"Your previous reply could not be used: {error}\n"
            f"Reply again with ONLY a JSON object of the form "
            f'{{"recommendations": [...]}} containing exactly {count} items, '
            f"each with at least title, year and reason."
        ),
    }
