"""OneNote section lookups via the Microsoft Graph SDK."""

from __future__ import annotations

from msgraph import GraphServiceClient

from . import notebooks


async def list_sections(client: GraphServiceClient, notebook_id: str) -> list[dict]:
    """List all sections in a notebook."""
    result = await client.me.onenote.notebooks.by_notebook_id(notebook_id).sections.get()
    if not result or not result.value:
        return []
    return [_section_to_dict(sec) for sec in result.value]


async def find_section_id(client: GraphServiceClient, notebook_name: str, section_name: str) -> str:
    """Resolve a section id from notebook and section display names (exact match)."""
    notebook_id = await notebooks.find_notebook_id(client, notebook_name)
    for section in await list_sections(client, notebook_id):
        if section["displayName"] == section_name:
            return section["id"]
    raise LookupError(f'Section "{section_name}" not found in notebook "{notebook_name}"')


def _section_to_dict(sec) -> dict:
    return {
        "id": sec.id,
        "displayName": sec.display_name,
        "createdDateTime": sec.created_date_time.isoformat() if sec.created_date_time else None,
        "lastModifiedDateTime": sec.last_modified_date_time.isoformat() if sec.last_modified_date_time else None,
    }
