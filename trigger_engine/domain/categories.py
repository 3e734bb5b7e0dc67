"""
Keyword/attribute rules that tag intake items with trigger categories.

Rules are evaluated in order, once per item, and an item may match several
categories (cheese is both dairy and histamine). Adding a category means adding
a rule here; aggregation never needs to change.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from trigger_engine.domain.models import ExposureCategory


@dataclass(frozen=True)
class CategoryRule:
    """Match on name substrings, an exact source category, or a declared allergen."""

    category: ExposureCategory
    keywords: tuple[str, ...] = ()
    source_categories: tuple[str, ...] = ()
    allergens: tuple[str, ...] = ()

    def matches(self, name: str, source_category: str, allergens: frozenset[str]) -> bool:
        if any(allergen in allergens for allergen in self.allergens):
            return True
        if source_category in self.source_categories:
            return True
        return any(keyword in name for keyword in self.keywords)


FOOD_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        ExposureCategory.GLUTEN,
        keywords=("wheat", "bread", "pasta", "oat", "barley", "rye", "flour"),
        source_categories=("grain",),
        allergens=("gluten",),
    ),
    CategoryRule(
        ExposureCategory.DAIRY,
        keywords=("milk", "cheese", "yogurt", "butter", "cream"),
        source_categories=("dairy",),
        allergens=("dairy",),
    ),
    CategoryRule(
        ExposureCategory.CAFFEINE,
        keywords=("coffee", "tea", "chocolate", "cola", "cocoa"),
    ),
    CategoryRule(
        ExposureCategory.FRIED,
        keywords=("fried", "fries", "chips", "crispy", "battered"),
    ),
    CategoryRule(
        ExposureCategory.ACIDIC_NIGHTSHADE,
        keywords=(
            "tomato",
            "pepper",
            "potato",
            "eggplant",
            "citrus",
            "orange",
            "lemon",
            "lime",
            "paprika",
            "grapefruit",
        ),
        source_categories=("fruit",),
    ),
    CategoryRule(
        ExposureCategory.HISTAMINE,
        keywords=(
            "aged",
            "fermented",
            "wine",
            "cheese",
            "sauerkraut",
            "tuna",
            "avocado",
            "spinach",
            "processed meat",
            "salami",
            "ham",
        ),
    ),
    CategoryRule(
        ExposureCategory.SOY,
        keywords=("soy", "tofu", "tempeh", "miso", "edamame"),
        allergens=("soy",),
    ),
    CategoryRule(
        ExposureCategory.SUGAR,
        keywords=(
            "sugar",
            "sweet",
            "candy",
            "dessert",
            "cookie",
            "cake",
            "donut",
            "pie",
            "ice cream",
            "soda",
        ),
        source_categories=("fruit",),
    ),
)

MEDICATION_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(ExposureCategory.MAGNESIUM_CITRATE, keywords=("magnesium citrate",)),
    CategoryRule(
        ExposureCategory.H1_ANTIHISTAMINE,
        keywords=("loratadine", "cetirizine", "diphenhydramine"),
        source_categories=("antihistamine_h1",),
    ),
    CategoryRule(
        ExposureCategory.H2_ANTIHISTAMINE,
        keywords=("famotidine", "ranitidine"),
        source_categories=("antihistamine_h2",),
    ),
    CategoryRule(ExposureCategory.PSEUDOEPHEDRINE, keywords=("pseudoephedrine",)),
)


def classify(
    rules: Iterable[CategoryRule],
    name: str,
    source_category: str | None = None,
    allergens: Iterable[str] = (),
) -> list[ExposureCategory]:
    """Return every category whose rule matches, in rule order."""
    lower_name = name.lower()
    lower_category = (source_category or "").strip().lower()
    allergen_set = frozenset(a.strip().lower() for a in allergens)
    return [rule.category for rule in rules if rule.matches(lower_name, lower_category, allergen_set)]


def classify_food(
    name: str, food_category: str | None = None, allergens: Iterable[str] = ()
) -> list[ExposureCategory]:
    return classify(FOOD_RULES, name, food_category, allergens)


def classify_medication(name: str, medication_category: str | None = None) -> list[ExposureCategory]:
    return classify(MEDICATION_RULES, name, medication_category)
