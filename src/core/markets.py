"""Market registry and URL-to-market resolution."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class Market:
    """A market content site."""

    code: str
    name: str
    url: str
    language: str
    timezone: str
    allowed_paths: tuple[str, ...] = ()

    @property
    def host(self) -> str:
        return _normalize_host(urlparse(self.url).netloc)


def _normalize_host(netloc: str) -> str:
    host = netloc.lower().split(":", 1)[0]
    return host[4:] if host.startswith("www.") else host


_GLOBAL = "https://www.truthaboutweight.global"

MARKETS: dict[str, Market] = {
    m.code: m
    for m in [
        Market("de", "Germany", "https://www.ueber-gewicht.de/", "de", "Europe/Berlin"),
        Market("fr", "France", "https://www.audeladupoids.fr/", "fr", "Europe/Paris"),
        Market("it", "Italy", "https://www.novoio.it/", "it", "Europe/Rome"),
        Market("es", "Spain", "https://www.laverdaddesupeso.es/", "es", "Europe/Madrid"),
        Market(
            "ca_en",
            "Canada (English)",
            "https://www.truthaboutweight.ca/en/",
            "en",
            "America/Toronto",
            ("/en/",),
        ),
        Market(
            "ca_fr",
            "Canada (French)",
            "https://www.truthaboutweight.ca/fr/",
            "fr",
            "America/Toronto",
            ("/fr/",),
        ),
        Market(
            "ch_de",
            "Switzerland (German)",
            "https://www.meingewichtverstehen.ch/",
            "de",
            "Europe/Zurich",
        ),
        Market(
            "ch_it",
            "Switzerland (Italian)",
            "https://www.laveritasulpeso.ch/",
            "it",
            "Europe/Zurich",
        ),
        Market(
            "ch_fr",
            "Switzerland (French)",
            "https://www.laveritesurlepoids.ch/",
            "fr",
            "Europe/Zurich",
        ),
        Market("se", "Sweden", "https://www.meromobesitas.se/", "sv", "Europe/Stockholm"),
        Market("no", "Norway", "https://www.snakkomvekt.no/", "no", "Europe/Oslo"),
        Market("lv", "Latvia", "https://www.manssvars.lv/", "lv", "Europe/Riga"),
        Market("ee", "Estonia", "https://www.minukaal.ee/", "et", "Europe/Tallinn"),
        Market("lt", "Lithuania", "https://www.manosvoris.lt/", "lt", "Europe/Vilnius"),
        Market("hr", "Croatia", "https://www.istinaodebljini.hr/", "hr", "Europe/Zagreb"),
        Market(
            "be_nl",
            "Belgium (Dutch)",
            f"{_GLOBAL}/be/nl.html",
            "nl",
            "Europe/Brussels",
            ("/be/nl",),
        ),
        Market(
            "be_fr",
            "Belgium (French)",
            f"{_GLOBAL}/be/fr.html",
            "fr",
            "Europe/Brussels",
            ("/be/fr",),
        ),
        Market("bg", "Bulgaria", f"{_GLOBAL}/bg/bg.html", "bg", "Europe/Sofia", ("/bg/",)),
        Market("fi", "Finland", f"{_GLOBAL}/fi/fi.html", "fi", "Europe/Helsinki", ("/fi/",)),
        Market("gr", "Greece", f"{_GLOBAL}/gr/el.html", "el", "Europe/Athens", ("/gr/",)),
        Market("hu", "Hungary", f"{_GLOBAL}/hu/hu.html", "hu", "Europe/Budapest", ("/hu/",)),
        Market("is", "Iceland", f"{_GLOBAL}/is/is.html", "is", "Atlantic/Reykjavik", ("/is/",)),
        Market("ie", "Ireland", f"{_GLOBAL}/ie/en.html", "en", "Europe/Dublin", ("/ie/",)),
        Market("sk", "Slovakia", f"{_GLOBAL}/sk/sk.html", "sk", "Europe/Bratislava", ("/sk/",)),
        Market("rs", "Serbia", f"{_GLOBAL}/rs/sr.html", "sr", "Europe/Belgrade", ("/rs/",)),
        Market("global", "Global", f"{_GLOBAL}/", "en", "UTC"),
    ]
}

DEFAULT_LANGUAGE = "en"


def get_market(code: str) -> Market | None:
    """Look up a market by code (case-insensitive)."""
    return MARKETS.get(code.lower())


def market_from_url(url: str) -> str | None:
    """Resolve the market code for a page URL.

    Matches on host, then on the longest allowed path prefix. Markets without
    path restrictions match any path on their host.
    """
    parsed = urlparse(url)
    host = _normalize_host(parsed.netloc)
    path = parsed.path.lower()
    if not host:
        return None

    best_code: str | None = None
    best_length = -1
    for market in MARKETS.values():
        if market.host != host:
            continue
        if not market.allowed_paths:
            if best_length < 0:
                best_code, best_length = market.code, 0
            continue
        for prefix in market.allowed_paths:
            if path.startswith(prefix) and len(prefix) > best_length:
                best_code, best_length = market.code, len(prefix)
    return best_code


def language_from_url(url: str) -> str:
    """Resolve the content language for a page URL."""
    code = market_from_url(url)
    if code is None:
        return DEFAULT_LANGUAGE
    return MARKETS[code].language


def market_display_name(code: str | None) -> str:
    """Human-readable market name, or the raw code when unknown."""
    if not code:
        return "Unknown"
    market = get_market(code)
    return market.name if market else code
