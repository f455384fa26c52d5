from fastapi import APIRouter

from .generator import (
    CitationData,
    generate_all_citations,
    format_citation_for_display,
    format_bibtex_for_display,
)

router = APIRouter(prefix="/citations", tags=["Citations API"])

@router.post("")
def create_citations(data: CitationData, display: bool = False):
    """
    Retourne les quatre citations d'une fiche.
    - display=true: MLA/Chicago/APA en HTML (<em>), BibTeX échappé
    """
    citations = generate_all_citations(data)
    if not display:
        return citations
    return {
        "mla": str(format_citation_for_display(citations["mla"])),
        "chicago": str(format_citation_for_display(citations["chicago"])),
        "apa": str(format_citation_for_display(citations["apa"])),
        "bibtex": str(format_bibtex_for_display(citations["bibtex"])),
    }
