"""
Module 'citations': citations MLA, Chicago, APA et BibTeX des fiches d'archives.
"""

from .generator import (
    CitationData,
    generate_mla_citation,
    generate_chicago_citation,
    generate_apa_citation,
    generate_bibtex_citation,
    generate_all_citations,
    format_citation_for_display,
    format_bibtex_for_display,
)

__all__ = [
    "CitationData",
    "generate_mla_citation",
    "generate_chicago_citation",
    "generate_apa_citation",
    "generate_bibtex_citation",
    "generate_all_citations",
    "format_citation_for_display",
    "format_bibtex_for_display",
]
