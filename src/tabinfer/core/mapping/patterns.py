"""
Column-name patterns per semantic role and language.

Languages are ISO-639-3 codes. Within a list, more specific patterns come
first; the mapping detector scores earlier matches higher. The tables are
read-only and built once at import.
"""

import re
from types import MappingProxyType
from typing import Mapping, Sequence, Tuple

DEFAULT_LANGUAGE = "eng"

ROLES = ("title", "description", "location_name", "timestamp", "location")

_RAW_PATTERNS = {
    "title": {
        "eng": ("title", "name", "event.*name", "event.*title", "label", "event"),
        "deu": (
            "titel",
            "name",
            "bezeichnung",
            "veranstaltung.*name",
            "veranstaltung.*titel",
            "veranstaltung",
        ),
        "fra": ("titre", "nom", "événement.*nom", "événement.*titre", "intitulé", "événement"),
        "spa": ("título", "nombre", "evento.*nombre", "evento.*título", "denominación", "evento"),
        "ita": ("titolo", "nome", "evento.*nome", "evento.*titolo", "denominazione", "evento"),
        "nld": ("titel", "naam", "evenement.*naam", "evenement.*titel", "benaming", "evenement"),
        "por": ("título", "nome", "evento.*nome", "evento.*título", "denominação", "evento"),
    },
    "description": {
        "eng": (
            "description",
            "details",
            "summary",
            "notes",
            "text",
            "content",
            "event.*description",
        ),
        "deu": (
            "beschreibung",
            "details",
            "zusammenfassung",
            "notizen",
            "text",
            "inhalt",
            "veranstaltung.*beschreibung",
        ),
        "fra": (
            "description",
            "détails",
            "résumé",
            "notes",
            "texte",
            "contenu",
            "événement.*description",
        ),
        "spa": (
            "descripción",
            "detalles",
            "resumen",
            "notas",
            "texto",
            "contenido",
            "evento.*descripción",
        ),
        "ita": (
            "descrizione",
            "dettagli",
            "sommario",
            "note",
            "testo",
            "contenuto",
            "evento.*descrizione",
        ),
        "nld": (
            "beschrijving",
            "details",
            "samenvatting",
            "notities",
            "tekst",
            "inhoud",
            "evenement.*beschrijving",
        ),
        "por": (
            "descrição",
            "detalhes",
            "resumo",
            "notas",
            "texto",
            "conteúdo",
            "evento.*descrição",
        ),
    },
    "location_name": {
        "eng": (
            "venue",
            "venue.*name",
            "place",
            "place.*name",
            "location",
            "location.*name",
            "site",
            "spot",
            "where",
        ),
        "deu": ("veranstaltungsort", "ort", "spielstätte", "standort", "platz", "lokalität", "wo"),
        "fra": ("lieu", "endroit", "place", "salle", "site", "où"),
        "spa": ("lugar", "sitio", "local", "sede", "recinto", "donde", "dónde"),
        "ita": ("luogo", "posto", "locale", "sede", "sito", "dove"),
        "nld": ("locatie", "plaats", "plek", "zaal", "site", "waar"),
        "por": ("local", "lugar", "recinto", "sede", "sítio", "onde"),
    },
    "timestamp": {
        "eng": (
            "date",
            "timestamp",
            "datetime",
            "date.*time",
            "created.*at",
            "event.*date",
            "event.*time",
            "time",
            "when",
        ),
        "deu": (
            "datum",
            "zeitstempel",
            "erstellt.*am",
            "veranstaltung.*datum",
            "veranstaltung.*zeit",
            "zeit",
            "wann",
        ),
        "fra": (
            "date",
            "horodatage",
            "créé.*le",
            "événement.*date",
            "événement.*heure",
            "heure",
            "quand",
        ),
        "spa": ("fecha", "timestamp", "creado.*el", "evento.*fecha", "evento.*hora", "hora", "cuándo"),
        "ita": ("data", "timestamp", "creato.*il", "evento.*data", "evento.*ora", "ora", "quando"),
        "nld": (
            "datum",
            "tijdstempel",
            "gemaakt.*op",
            "evenement.*datum",
            "evenement.*tijd",
            "tijd",
            "wanneer",
        ),
        "por": ("data", "timestamp", "criado.*em", "evento.*data", "evento.*hora", "hora", "quando"),
    },
    "location": {
        "eng": (
            "address",
            "addr",
            "location",
            "place",
            "venue",
            "city",
            "town",
            "region",
            "area",
            "street",
            "full.*address",
            "event.*location",
            "event.*address",
            "event.*place",
            "postal.*address",
        ),
        "deu": (
            "adresse",
            "ort",
            "standort",
            "platz",
            "veranstaltungsort",
            "stadt",
            "region",
            "straße",
            "strasse",
            "vollständige.*adresse",
            "veranstaltung.*ort",
            "veranstaltung.*adresse",
            "postadresse",
        ),
        "fra": (
            "adresse",
            "lieu",
            "emplacement",
            "place",
            "salle",
            "ville",
            "région",
            "rue",
            "adresse.*complète",
            "événement.*lieu",
            "événement.*adresse",
            "adresse.*postale",
        ),
        "spa": (
            "dirección",
            "lugar",
            "ubicación",
            "sitio",
            "local",
            "ciudad",
            "región",
            "calle",
            "dirección.*completa",
            "evento.*lugar",
            "evento.*dirección",
            "dirección.*postal",
        ),
        "ita": (
            "indirizzo",
            "luogo",
            "posizione",
            "posto",
            "locale",
            "città",
            "regione",
            "via",
            "indirizzo.*completo",
            "evento.*luogo",
            "evento.*indirizzo",
            "indirizzo.*postale",
        ),
        "nld": (
            "adres",
            "locatie",
            "plaats",
            "plek",
            "zaal",
            "stad",
            "regio",
            "straat",
            "volledig.*adres",
            "evenement.*locatie",
            "evenement.*adres",
            "postadres",
        ),
        "por": (
            "endereço",
            "local",
            "localização",
            "lugar",
            "recinto",
            "cidade",
            "região",
            "rua",
            "endereço.*completo",
            "evento.*local",
            "evento.*endereço",
            "endereço.*postal",
        ),
    },
}


def _compile(patterns: Sequence[str]) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(f"^{p}$", re.IGNORECASE) for p in patterns)


FIELD_PATTERNS: Mapping[str, Mapping[str, Tuple[re.Pattern, ...]]] = MappingProxyType(
    {
        role: MappingProxyType({lang: _compile(p) for lang, p in languages.items()})
        for role, languages in _RAW_PATTERNS.items()
    }
)


def patterns_for(role: str, language: str) -> Tuple[re.Pattern, ...]:
    """Patterns of ``role`` in ``language``, English when the language has none."""
    try:
        languages = FIELD_PATTERNS[role]
    except KeyError:
        raise ValueError(f"Unknown field role: {role}") from None
    return languages.get(language, languages[DEFAULT_LANGUAGE])
