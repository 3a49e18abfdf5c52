# ABOUTME: Pulls search-grounding citations (title + URI) out of a generate_content response.
# ABOUTME: Keeps backend order; no dedup, sorting or ranking.

from core.schemas import GroundingSource


def extract_sources(response) -> list[GroundingSource]:
    """Return sources for chunks with both a non-empty web URI and title; [] when no grounding metadata."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) if metadata else None
    sources: list[GroundingSource] = []
    for chunk in chunks or []:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None) if web else None
        title = getattr(web, "title", None) if web else None
        if uri and title:
            sources.append(GroundingSource(title=title, uri=uri))
    return sources
