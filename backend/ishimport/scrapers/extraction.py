"""Field extraction helpers for vacancy payloads: contacts, HTML text, benefits, sections."""

import re
from typing import Final

from bs4 import BeautifulSoup

UZ_PHONE_RE = re.compile(r"998\d{9}")
_FULL_PHONE_RE = re.compile(r"^\+?998\d{9}$")
_TELEGRAM_HANDLE_RE = re.compile(r"@([a-zA-Z][a-zA-Z0-9_]{4,31})")
_TELEGRAM_LINK_RE = re.compile(r"(?:https?://)?t\.me/([a-zA-Z0-9_]+)", re.IGNORECASE)

# Source benefit ids (additional_benefits_list) with their display labels
BENEFIT_LABELS: Final[dict[int, tuple[str, str]]] = {
    1: ("Ovqat bilan ta'minlanadi", "Обеспечивается питанием"),
    2: ("Transport xizmati mavjud", "Есть транспорт"),
    3: ("Maxsus kiyim bilan ta'minlanadi", "Выдается спецодежда"),
    4: ("Yotoqxona yoki turar joy bilan ta'minlanadi", "Обеспечивается жильём/общежитием"),
    5: ("Tibbiy ko'rik mavjud", "Есть медосмотр"),
    6: ("Moddiy rag'batlantirish mavjud", "Материальное стимулирование"),
    7: ("Boshqa ijtimoiy paketlar mavjud", "Есть другие соцпакеты"),
}

# Phrases in a free-text description that imply a benefit id
BENEFIT_KEYWORDS: Final[tuple[tuple[str, int], ...]] = (
    ("ovqat", 1),
    ("transport", 2),
    ("maxsus kiyim", 3),
    ("yotoqxona", 4),
    ("turar joy", 4),
    ("tibbiy ko", 5),
    ("moddiy rag", 6),
    ("ijtimoiy paket", 7),
)

SECTION_HEADERS: Final[dict[str, str]] = {
    "ish_vazifalari": r"(?:Ish vazifalari|Vazifalar|Majburiyatlar|Obyazannosti|Обязанности)",
    "talablar": r"(?:Talablar|Ish talablari|Nomzodga talablar|Trebovaniya|Требования)",
    "qulayliklar": (
        r"(?:Imkoniyatlar|Qulayliklar|Sharoitlar|Usloviya|Условия|Ijtim[oо]iy(?:\s+paketlar)?"
        r"|Ijtimoiiy|Preimushchestva|Sotsialniy|Социальн\w*)"
    ),
}
_SECTION_MARKERS = [
    (key, re.compile(rf"{pattern}\s*[:\-–—.]", re.IGNORECASE)) for key, pattern in SECTION_HEADERS.items()
]
_HEADER_GUARD = re.compile("|".join(SECTION_HEADERS.values()), re.IGNORECASE)
_SECTION_SPLIT = re.compile(r"__SECTION_(ish_vazifalari|talablar|qulayliklar)__")

_BLOCK_TAGS = ("p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6")


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def normalize_phone(phone: str | None) -> str | None:
    """Return ``+998XXXXXXXXX`` for an Uzbek number, else None."""
    if not phone:
        return None
    cleaned = re.sub(r"[^\d+]", "", str(phone))
    if _FULL_PHONE_RE.match(cleaned):
        return cleaned if cleaned.startswith("+") else f"+{cleaned}"
    return None


def extract_telegram(value: str | None) -> str | None:
    """Pull a Telegram handle out of a free-form "other network" field.

    Tries ``@username``, then a ``t.me/username`` link, then a bare phone
    number (Telegram accounts are phone-addressable).
    """
    if not value:
        return None
    match = _TELEGRAM_HANDLE_RE.search(value)
    if match:
        return match.group(0)
    match = _TELEGRAM_LINK_RE.search(value)
    if match:
        return f"@{match.group(1)}"
    match = UZ_PHONE_RE.search(_digits(value))
    if match:
        return f"+{match.group(0)}"
    return None


def has_valid_contact(detail: dict) -> bool:
    hr = detail.get("hr") or {}
    for phone in (hr.get("phone"), detail.get("additional_phone")):
        if phone and UZ_PHONE_RE.search(_digits(str(phone))):
            return True
    network = detail.get("another_network")
    if network:
        lowered = str(network).lower()
        if "t.me/" in lowered or "@" in lowered or UZ_PHONE_RE.search(_digits(lowered)):
            return True
    return False


def html_to_text(html: str | None) -> str:
    """Plain text of an HTML fragment; block elements and <br> become line breaks."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")
    lines = (" ".join(line.split()) for line in soup.get_text(" ").split("\n"))
    return "\n".join(line for line in lines if line)


def extract_benefits_from_html(html: str | None) -> list[int]:
    if not html:
        return []
    content = html_to_text(html).lower()
    found: list[int] = []
    for phrase, benefit_id in BENEFIT_KEYWORDS:
        if phrase in content and benefit_id not in found:
            found.append(benefit_id)
    return found


def benefits_text(benefit_ids, lang: str = "uz") -> str | None:
    position = 0 if lang == "uz" else 1
    labels = [BENEFIT_LABELS[i][position] for i in benefit_ids if i in BENEFIT_LABELS]
    return ", ".join(labels) if labels else None


def _split_items(content: str) -> list[str]:
    text = content.replace("\r", "\n")
    text = re.sub(r":\s*[–—-]\s*", ":\n- ", text)
    text = re.sub(r"[•·]", "\n- ", text)
    text = re.sub(r"^\s*[–—-]\s*", "\n- ", text, flags=re.MULTILINE)
    text = re.sub(r"(?:^|\s)[–—-]\s+", "\n- ", text)
    text = re.sub(r"(?:^|\s)\d+\.\s+", "\n- ", text)
    text = text.replace(";", "\n")

    items = []
    for line in text.split("\n"):
        line = re.sub(r"^[–—•·*\-]+\s*", "", line.strip()).strip()
        if len(line) > 2 and not _HEADER_GUARD.search(line):
            items.append(line)
    return items


def extract_sections(html: str | None) -> dict[str, list[str]]:
    """Split a description into duties / requirements / perks bullet lists by header words."""
    sections: dict[str, list[str]] = {key: [] for key in SECTION_HEADERS}
    if not html:
        return sections

    marked = html_to_text(html)
    for key, marker in _SECTION_MARKERS:
        marked = marker.sub(f"\n__SECTION_{key}__\n", marked)

    parts = _SECTION_SPLIT.split(marked)
    for i in range(1, len(parts), 2):
        sections[parts[i]].extend(_split_items(parts[i + 1] if i + 1 < len(parts) else ""))
    return sections
