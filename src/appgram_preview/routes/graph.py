"""Graph endpoints — survey trees as nodes/edges for visual inspection."""

from fastapi import APIRouter, Depends

from appgram_surveys.catalog import SurveyCatalog

from appgram_preview.dependencies import get_catalog
from appgram_preview.graph import build_survey_graph

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get("")
def list_surveys(
    catalog: SurveyCatalog = Depends(get_catalog),
) -> list[dict]:
    """Every survey in the catalog with its node count."""
    return [
        {
            "id": d.survey.id,
            "slug": d.survey.slug,
            "name": d.survey.name,
            "is_active": d.survey.is_active,
            "node_count": len(d.nodes),
        }
        for d in (catalog.get_by_slug(s) for s in catalog.slugs())
    ]


@router.get("/{slug}")
def get_survey_graph(
    slug: str,
    catalog: SurveyCatalog = Depends(get_catalog),
) -> dict:
    """Nodes, labelled edges and authoring checks for one survey.

    Inactive surveys are included; unknown slugs return 404.
    """
    return build_survey_graph(catalog.get_by_slug(slug))
