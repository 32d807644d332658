"""Category resolution for imported vacancies."""

import logging
import re
from dataclasses import dataclass
from typing import Final
from uuid import UUID

logger = logging.getLogger(__name__)

# Canonical category keys, in display order
CATEGORY_KEYS: Final[list[str]] = [
    "IT",
    "PRODUCTION",
    "SERVICES",
    "EDUCATION",
    "HEALTHCARE",
    "FINANCE",
    "CONSTRUCTION",
    "AGRICULTURE",
    "TRANSPORT",
    "SALES",
    "OTHER",
]


@dataclass(frozen=True)
class CategoryRule:
    """Keywords are whole-token phrases; a trailing ``*`` makes the last word a prefix."""

    key: str
    keywords: tuple[str, ...]
    exclude: tuple[str, ...] = ()


# Order matters - first matching rule wins
CATEGORY_RULES: Final[list[CategoryRule]] = [
    CategoryRule("HEALTHCARE", (
        "shifokor*", "doktor", "doctor", "vrach", "врач*", "hamshira*", "медсестра", "medsestra",
        "nurse", "farmatsevt*", "фармацевт*", "laborant*", "фельдшер*", "stomatolog*", "dentist",
    ), exclude=("veterinar*", "ветеринар*")),
    CategoryRule("EDUCATION", (
        "oqituvchi*", "teacher", "преподаватель", "учитель", "mentor", "ustoz",
        "tarbiyachi*", "воспитатель", "repititor", "репетитор", "tutor", "pedagog*",
    )),
    CategoryRule("FINANCE", (
        "buxgalter*", "бухгалтер*", "accountant", "hisobchi*", "auditor", "аудитор",
        "экономист", "ekonomist*", "finance", "finans*", "bankir",
    )),
    CategoryRule("TRANSPORT", (
        "haydovchi*", "driver", "voditel", "водитель", "kuryer*", "kurier",
        "курьер", "courier", "ekspeditor*", "экспедитор", "logist*", "логист*",
        "taksi", "taxi", "yuk tashish", "delivery",
    )),
    CategoryRule("SALES", (
        "sotuvchi*", "продавец", "sales", "savdo", "kassir*", "кассир*", "merchandiser",
        "merch", "promouter", "промоутер", "marketolog*", "маркетолог*", "smm",
    )),
    CategoryRule("CONSTRUCTION", (
        "quruvchi*", "строитель", "santexnik*", "сантехник*", "elektrik*", "электрик*",
        "payvand*", "сварщик*", "montaj*", "монтаж*", "suvoqchi*", "gips*", "beton*", "kran*",
    )),
    CategoryRule("PRODUCTION", (
        "ishlab chiqar*", "zavod*", "fabrika*", "цех*", "dastgoh*", "станок",
        "stanok operator", "operator stanok", "оператор станка",
        "tokar*", "токарь", "slesar*", "слесарь", "qadoql*", "upakov*", "tikuvchi*",
        "швея", "nonvoy*", "пекарь", "qandolatchi*",
    )),
    CategoryRule("IT", (
        "dasturchi*", "developer", "programmist*", "программист*", "frontend", "backend",
        "fullstack", "full stack", "devops", "sysadmin", "system administrator", "qa",
        "tester", "тестиров*", "analyst", "аналитик*", "data", "sql", "database", "1c",
        "1с", "айти", "it", "ux", "ui", "web", "android", "ios",
    ), exclude=("call center", "call centre", "data entry")),
    CategoryRule("AGRICULTURE", (
        "agronom*", "агроном*", "фермер*", "dehqon*", "chorvador*", "bogbon*",
        "ferma*", "agro*", "veterinar*", "ветеринар*",
    )),
    CategoryRule("SERVICES", (
        "oshpaz*", "повар*", "cook", "ofitsiant*", "waiter", "barista", "barmen",
        "farrosh*", "tozalovchi*", "uborsh*", "уборщи*", "qorovul*", "охранник*",
        "sartarosh*", "парикмахер*", "call center", "call centre", "operator call",
        "xizmat*", "service",
    )),
]

# Source category names (OsonIsh mmk_group cat2/cat1) that map directly to a key
STRICT_CATEGORY_MAP: Final[dict[str, str]] = {
    "TAʼLIM SOHASIDAGI PROFESSIONAL-MUTAXASSISLAR": "EDUCATION",
    "HUQUQSHUNOSLIK, IJTIMOIY ISHLAR, MADANIYAT VA OʻXSHASH FAOLIYAT SOHASIDAGI YORDAMCHI XODIMLAR": "EDUCATION",
    "SANʼAT, MADANIYAT VA PAZANDALIK BOʻYICHA MUTAXASSIS-TEXNIKLAR": "EDUCATION",
    "MADANIYAT, GUMANITAR VA HUQUQ SOHASIDAGI PROFESSIONAL-MUTAXASSISLAR": "EDUCATION",
    "SOGʻLIQNI SAQLASH SOHASIDA PROFESSIONAL-MUTAXASSISLAR": "HEALTHCARE",
    "Sogʻliqni saqlashda oʻrta maʼlumotli tibbiyot xodimlari": "HEALTHCARE",
    "AXBOROT-KOMMUNIKATSIYA TEXNOLOGIYALARI BOʻYICHA PROFESSIONAL-MUTAXASSISLAR": "IT",
    "AXBOROT-KOMMUNIKATSIYA TEXNOLOGIYALARI SOHASIDAGI MUTAXASSIS-TEXNIKLAR": "IT",
    "SANOAT USKUNALARI VA STATSIONAR QURILMALARI OPERATORLARI": "PRODUCTION",
    "OZIQ-OVQAT, YOGʻOCHNI QAYTA ISHLASH, TOʻQIMACHILIK VA TIKUVCHILIK SANOATI VA TURDOSH KASBLAR ISHCHILARI": "PRODUCTION",
    "METALGA ISHLOV BERISH SANOATI, MASHINASOZLIK VA SHUNGA OʻXSHASH SOHALAR ISHCHILARI": "PRODUCTION",
    "POLIGRAFIYA ISHLAB CHIQARISH VA QOʻL MEHNATINING YUQORI MALAKALI ISHCHILARI": "PRODUCTION",
    "FAN VA TEXNIKA SOHASIDA PROFESSIONAL-MUTAXASSISLAR": "PRODUCTION",
    "FAN VA TEXNIKA SOHASIDA MUTAXASSIS-TEXNIKLAR": "PRODUCTION",
    "ELEKTROTEXNIKA VA ELEKTRONIKA SOHASIDAGI ISHCHILAR": "PRODUCTION",
    "TOGʻ-KON SANOATI, QURILISH, QAYTA ISHLASH SANOATI VA TRANSPORT SOHASIDAGI MALAKASIZ ISHCHILAR": "PRODUCTION",
    "YIGʻUVCHILAR": "PRODUCTION",
    "SANOAT, QURILISH VA SHU KABI SOHA MALAKALI ISHCHILARI": "PRODUCTION",
    "UY XIZMATCHILARI VA FARROSHLAR": "SERVICES",
    "XUSUSIY MULK VA FUQAROLARNI MUHOFAZA QILISH XIZMATI XODIMLARI": "SERVICES",
    "TAOM TAYYORLASHDA YORDAMCHILAR": "SERVICES",
    "AHOLIGA XIZMAT KOʻRSATISH SOHASI XIZMATCHILARI": "SERVICES",
    "INDIVIDUAL XIZMATLAR SOHASIDAGI XODIMLAR": "SERVICES",
    "YAKKA TARTIBDA XIZMAT KOʻRSATUVCHI XODIMLAR": "SERVICES",
    "MEHMONXONA BIZNESINING RAHBARLARI, DOʻKONLAR VA TEGISHLI FAOLIYAT SOHALARI RAHBARLARI (BOSHQARUVCHILARI)": "SERVICES",
    "CHIQINDILARNI YIGʻUVCHI VA BOSHQA MALAKASIZ XODIMLAR": "SERVICES",
    "SAVDO VA XIZMAT KOʻRSATISH SOHASI XODIMLARI": "SERVICES",
    "SOTUVCHILAR": "SALES",
    "QURILISH VA MONTAJ ISHLARI EXTRUKTORLARI VA TURDOSH KASBLAR ISHCHILARI": "CONSTRUCTION",
    "BINOLARNI QURUVCHILAR VA TAMIRLOVCHILAR, QURILISH-MONTAJ ISHLARI ISHCHILARI": "CONSTRUCTION",
    "QURILISH SOHASI VA SHUNGA OʻXSHASH SOHA ISHCHILARI (ELEKTRIKLARDAN TASHQARI)": "CONSTRUCTION",
    "HAYDOVCHILAR VA KOʻCHMA USKUNALAR OPERATORLARI": "TRANSPORT",
    "KOʻCHMA QURILMALAR OPERATORLARI VA HAYDOVCHILARI": "TRANSPORT",
    "QONUN CHIQARUVCHILAR, YUQORI MANSABDOR SHAXSLAR VA BOSHQARUVCHILAR": "FINANCE",
    "ISHLAB CHIQARISH VA IXTISOSLASHTIRILGAN XIZMATLAR SOHASIDAGI BOʻLINMALAR RAHBARLARI": "FINANCE",
    "MATERIAL QIYMATLILIKLAR HISOBI VA RAQAMLI AXBOROTLARGA ISHLOV BERISH SOHASIDAGI XIZMATCHILAR": "FINANCE",
    "OFIS TEXNIKALARIGA XIZMAT KOʻRSATISH VA UMUMIY PROFIL XIZMATCHILARI": "FINANCE",
    "MAʼMURIYAT VA BIZNES SOHASIDAGI PROFESSIOANAL-MUTAXASSISLAR": "FINANCE",
    "MAʼMURIY VA IQTISODIY FAOLIYAT BOʻYICHA MUTAXASSISLAR": "FINANCE",
    "KORPORATIV BOSHQARUVCHILAR": "FINANCE",
    "BOSHQA OFIS XIZMATCHILARI": "FINANCE",
    "QISHLOQ VA OʻRMON XOʻJALIGI, BALIQCHILIK VA BALIQSHUNOSLIKDAGI MALAKASIZ ISHCHILAR": "AGRICULTURE",
    "OVCHILAR VA OʻRMON HAMDA BALIQ MAHSULOTLARIDAN TOVAR ISHLAB CHIQARUVCHILAR": "AGRICULTURE",
    "QISHLOQ XOʻJALIGI MAHSULOTLARINI ISHLAB CHIQARUVCHILAR": "AGRICULTURE",
    "BOGʻDORCHILIK, TOMORQA VA DALA EKINLARI TOVARLARINI ISHLAB CHIQARUVCHILAR": "AGRICULTURE",
}

_APOSTROPHES_RE = re.compile(r"[\u2018\u2019\u00b4\u02bb\u02bc\u2032'\"`]")
_NON_ALNUM_RE = re.compile(r"[^0-9a-z\u0400-\u04ff]+")


def normalize_text(text: str | None) -> str:
    """Lowercase, drop apostrophes, collapse everything else to single spaces."""
    if not text:
        return ""
    cleaned = _APOSTROPHES_RE.sub("", text.lower())
    return " ".join(_NON_ALNUM_RE.sub(" ", cleaned).split())


def _keyword_pattern(keyword: str) -> re.Pattern | None:
    prefix = keyword.endswith("*")
    phrase = normalize_text(keyword.rstrip("*"))
    if not phrase:
        return None
    tail = r"\S*" if prefix else ""
    return re.compile(rf"(?<!\S){re.escape(phrase)}{tail}(?!\S)")


@dataclass(frozen=True)
class _CompiledRule:
    key: str
    keywords: tuple[tuple[str, re.Pattern], ...]
    exclude: tuple[re.Pattern, ...]


def _compile(rule: CategoryRule) -> _CompiledRule:
    keywords = []
    for keyword in rule.keywords:
        pattern = _keyword_pattern(keyword)
        if pattern is not None:
            keywords.append((keyword, pattern))
    exclude = [p for p in map(_keyword_pattern, rule.exclude) if p is not None]
    return _CompiledRule(rule.key, tuple(keywords), tuple(exclude))


_COMPILED_RULES: Final[list[_CompiledRule]] = [_compile(rule) for rule in CATEGORY_RULES]
_STRICT_NORMALIZED: Final[list[tuple[str, str]]] = [
    (normalize_text(name), key) for name, key in STRICT_CATEGORY_MAP.items()
]


def match_rules(text: str | None) -> tuple[str, str] | None:
    """Return ``(category_key, matched_keyword)`` for the first rule that fires on ``text``.

    A rule whose exclude list matches is skipped even when one of its
    keywords also matches.
    """
    normalized = normalize_text(text)
    if not normalized:
        return None
    for rule in _COMPILED_RULES:
        if any(p.search(normalized) for p in rule.exclude):
            continue
        for keyword, pattern in rule.keywords:
            if pattern.search(normalized):
                return rule.key, keyword
    return None


def match_strict(source_category: str | None) -> str | None:
    normalized = normalize_text(source_category)
    if not normalized:
        return None
    for name, key in _STRICT_NORMALIZED:
        if name == normalized:
            return key
    for name, key in _STRICT_NORMALIZED:
        if name in normalized or normalized in name:
            return key
    return None


@dataclass(frozen=True)
class CategoryMatch:
    key: str
    category_id: UUID
    matched_by: str  # strict_match, category_keyword, title_keyword
    keyword: str | None = None


class CategoryIndex:
    """Maps category keys to the canonical ids present in the store."""

    def __init__(self, ids_by_key: dict[str, UUID]):
        self.ids_by_key = dict(ids_by_key)

    @classmethod
    def from_rows(cls, categories) -> "CategoryIndex":
        return cls({c.key: c.id for c in categories})

    def id_for(self, key: str) -> UUID | None:
        return self.ids_by_key.get(key)


def resolve_category(
    title: str | None,
    source_category: str | None = None,
    index: CategoryIndex | None = None,
) -> CategoryMatch | None:
    """Resolve a vacancy to a canonical category.

    Tries the strict source-category table, then keyword rules over the
    source category text, then keyword rules over the title. Returns None
    when nothing matches or the matched key is missing from the index.
    """
    if index is None:
        return None

    found: tuple[str, str, str | None] | None = None
    strict_key = match_strict(source_category)
    if strict_key:
        found = (strict_key, "strict_match", None)
    else:
        hit = match_rules(source_category)
        if hit:
            found = (hit[0], "category_keyword", hit[1])
        else:
            hit = match_rules(title)
            if hit:
                found = (hit[0], "title_keyword", hit[1])

    if not found:
        return None

    key, how, keyword = found
    category_id = index.id_for(key)
    if category_id is None:
        logger.warning(f"Category key {key} matched but not present in categories table")
        return None
    return CategoryMatch(key=key, category_id=category_id, matched_by=how, keyword=keyword)


def load_category_index(db) -> CategoryIndex:
    from ishimport.models.category import Category

    return CategoryIndex.from_rows(db.query(Category).all())
