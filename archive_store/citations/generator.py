"""
Génération de citations bibliographiques pour les fiches d'archives.
Fonctions pures: MLA (9e), Chicago (17e), APA (7e), BibTeX.
Les styles narratifs marquent l'italique avec *...*; format_citation_for_display le convertit en <em>.
Une clause absente (année, lieu) est omise, jamais laissée vide.
"""
import re
from datetime import date
from typing import Dict, Optional, Union

from markupsafe import Markup, escape
from pydantic import BaseModel, ConfigDict, Field

ARCHIVE_NAME = "Reparation Road Historical Archives"
WEBSITE_NAME = "Reparation Road"
BASE_URL = "https://reparationroad.com"


class CitationData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    collection_name: str = Field(alias="collectionName")
    record_identifier: str = Field(alias="recordIdentifier")
    year: Optional[Union[int, str]] = None
    location: Optional[str] = None
    archive_name: Optional[str] = Field(default=None, alias="archiveName")
    url: Optional[str] = None
    access_date: Optional[str] = Field(default=None, alias="accessDate")


def _archive(data: CitationData) -> str:
    return data.archive_name or ARCHIVE_NAME

def _url(data: CitationData) -> str:
    return data.url or BASE_URL

def _short_date(d: date) -> str:
    # "Oct 19, 2026"
    return f"{d:%b} {d.day}, {d.year}"

def _long_date(d: date) -> str:
    # "October 19, 2026"
    return f"{d:%B} {d.day}, {d.year}"

def generate_mla_citation(data: CitationData) -> str:
    """MLA 9th edition."""
    parts = [f'"{data.record_identifier}."', f"*{data.collection_name}*,"]
    if data.year:
        parts.append(f"{data.year},")
    parts.append(f"{_archive(data)},")
    if data.location:
        parts.append(f"{data.location},")
    parts.append(f"*{WEBSITE_NAME}*,")
    parts.append(f"{_url(data)}.")
    parts.append(f"Accessed {data.access_date or _short_date(date.today())}.")
    return " ".join(parts)

def generate_chicago_citation(data: CitationData) -> str:
    """Chicago 17th edition."""
    parts = [f'"{data.record_identifier},"', f"*{data.collection_name}*,"]
    if data.year:
        parts.append(f"{data.year},")
    if data.location:
        parts.append(f"{_archive(data)}, {data.location}.")
    else:
        parts.append(f"{_archive(data)}.")
    parts.append(f"*{WEBSITE_NAME}*.")
    parts.append(f"Accessed {data.access_date or _long_date(date.today())}.")
    parts.append(f"{_url(data)}.")
    return " ".join(parts)

def generate_apa_citation(data: CitationData) -> str:
    """APA 7th edition (auteur = archive, année entre parenthèses ou n.d.)."""
    parts = [f"{_archive(data)}."]
    parts.append(f"({data.year})." if data.year else "(n.d.).")
    parts.append(f"*{data.record_identifier}*")
    parts.append(f"[{data.collection_name}].")
    parts.append(f"{WEBSITE_NAME}.")
    parts.append(_url(data))
    return " ".join(parts)

def bibtex_key(record_identifier: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", record_identifier).lower()

def generate_bibtex_citation(data: CitationData) -> str:
    """Entrée @misc BibTeX pour LaTeX."""
    note = data.collection_name + (f", {data.location}" if data.location else "")
    return (
        f"@misc{{{bibtex_key(data.record_identifier)},\n"
        f"  title = {{{data.record_identifier}}},\n"
        f"  author = {{{{{_archive(data)}}}}},\n"
        f"  year = {{{data.year or 'n.d.'}}},\n"
        f"  note = {{{note}}},\n"
        f"  howpublished = {{\\url{{{_url(data)}}}}},\n"
        f"  organization = {{{WEBSITE_NAME}}}\n"
        f"}}"
    )

def generate_all_citations(data: CitationData) -> Dict[str, str]:
    return {
        "mla": generate_mla_citation(data),
        "chicago": generate_chicago_citation(data),
        "apa": generate_apa_citation(data),
        "bibtex": generate_bibtex_citation(data),
    }

_EMPHASIS = re.compile(r"\*(.*?)\*")

def format_citation_for_display(citation: str) -> Markup:
    """Échappe le HTML puis convertit *italique* en <em>italique</em>."""
    escaped = str(escape(citation))
    return Markup(_EMPHASIS.sub(r"<em>\1</em>", escaped))

def format_bibtex_for_display(citation: str) -> Markup:
    """BibTeX: texte échappé rendu tel quel (dans un <pre>)."""
    return escape(citation)
