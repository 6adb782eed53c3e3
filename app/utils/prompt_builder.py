from typing import List, Optional

from app import config


def resolve_language(lang: Optional[str]) -> str:
    """Map a requested language to "vi" or "en"; anything unknown is English."""
    if lang is None:
        lang = config.DEFAULT_LANG
    return "vi" if lang == "vi" else "en"


def get_categories(lang: Optional[str]) -> List[str]:
    return list(config.WASTE_CATEGORIES[resolve_language(lang)])


def format_categories(lang: Optional[str]) -> str:
    return ", ".join(f'"{label}"' for label in get_categories(lang))


def build_classification_prompt(lang: Optional[str]) -> str:
    language = "Vietnamese" if resolve_language(lang) == "vi" else "English"
    categories = format_categories(lang)

    return f"""Analyze this image and return ONLY a valid JSON object.
The response language MUST BE in {language}.

Required JSON Structure:
{{
 "object": "Name of the detected item",
 "material": "Main material (e.g., Plastic, Paper, Metal)",
 "category": "MUST BE EXACTLY ONE OF THESE: {categories}",
 "instruction": "Short, clear disposal instruction",
 "tip": "Short environmental tip related to this item",
 "confidence": <integer between 70 and 99>
}}"""
