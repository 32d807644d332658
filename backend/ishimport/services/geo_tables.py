"""Substitution tables used by geo name normalization.

Each table is an ordered tuple of ``(from, to)`` pairs applied in order.
Abbreviations are matched against the lowercased raw string (they may carry
punctuation); fixes and aliases replace whole tokens of the already
collapsed string, so a multi-word ``from`` must match a full token run.

Bump ``GEO_TABLES_VERSION`` whenever an entry changes meaning; it is stored
in import log notes so rows resolved under an older table can be found.
"""

from typing import Final

GEO_TABLES_VERSION: Final[str] = "2024.3"

# Applied to the lowercased raw string, before punctuation is collapsed
ABBREVIATIONS: Final[tuple[tuple[str, str], ...]] = (
    (r"\bshah\.", " shahri "),
    (r"\bsh\.", " shahri "),
    (r"\bsh\b", " shahri "),
    (r"\bvil\.", " viloyati "),
    (r"\bvil\b", " viloyati "),
    (r"\bobl\.", " oblast "),
    (r"\bobl\b", " oblast "),
    (r"(?<![\w])обл\.", " область "),
    (r"(?<![\w])г\.", " город "),
    (r"(?<![\w])р-н(?![\w])", " район "),
)

APOSTROPHE_VARIANTS: Final[str] = "‘’´ʻʼ`"

# Typo and transliteration variants -> canonical spelling
GEO_FIXES: Final[tuple[tuple[str, str], ...]] = (
    ("shaxrisabz", "shahrisabz"),
    ("kattakurgan", "kattaqorgon"),
    ("kattaqurgon", "kattaqorgon"),
    ("yangiyul", "yangiyol"),
    ("qungirot", "qongirot"),
    ("kungrad", "qongirot"),
    ("shumanay", "shomanay"),
    ("muynoq", "moynoq"),
    ("muynak", "moynoq"),
    ("turtkul", "tortkol"),
    ("khodjeyli", "xojayli"),
    ("xodjeyli", "xojayli"),
    ("qoraqolpogiston", "qoraqalpogiston"),
    ("karakalpakstan", "qoraqalpogiston"),
    ("ferghana", "fargona"),
)

# Exonyms and Russian names -> local (Uzbek latin) names
GEO_ALIASES: Final[tuple[tuple[str, str], ...]] = (
    ("tashkent", "toshkent"),
    ("ташкент", "toshkent"),
    ("andijan", "andijon"),
    ("андижан", "andijon"),
    ("bukhara", "buxoro"),
    ("бухара", "buxoro"),
    ("fergana", "fargona"),
    ("фергана", "fargona"),
    ("jizzakh", "jizzax"),
    ("джизак", "jizzax"),
    ("khorezm", "xorazm"),
    ("хорезм", "xorazm"),
    ("navoi", "navoiy"),
    ("навои", "navoiy"),
    ("kashkadarya", "qashqadaryo"),
    ("кашкадарья", "qashqadaryo"),
    ("наманган", "namangan"),
    ("samarkand", "samarqand"),
    ("самарканд", "samarqand"),
    ("syrdarya", "sirdaryo"),
    ("сырдарья", "sirdaryo"),
    ("surkhandarya", "surxondaryo"),
    ("сурхандарья", "surxondaryo"),
    ("karakalpakstan", "qoraqalpogiston"),
    ("каракалпакстан", "qoraqalpogiston"),
    ("нукус", "nukus"),
)

# Standalone administrative-unit words, both languages
CITY_TOKENS: Final[frozenset[str]] = frozenset({"shahri", "shahar", "gorod", "город", "city"})
DISTRICT_TOKENS: Final[frozenset[str]] = frozenset({"tuman", "tumani", "rayon", "район"})
REGION_TOKENS: Final[frozenset[str]] = frozenset({
    "viloyat", "viloyati", "oblast", "область",
    "respublika", "respublikasi", "republic", "республика",
})
GEO_TYPE_TOKENS: Final[frozenset[str]] = CITY_TOKENS | DISTRICT_TOKENS | REGION_TOKENS
