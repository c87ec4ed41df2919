"""OneNote notebook lookups via the Microsoft Graph SDK."""

from __future__ import annotations

from msgraph import GraphServiceClient


async def list_notebooks(client: GraphServiceClient) -> list[dict]:
    """List all notebooks for the authenticated user."""
    result = await client.me.onenote.notebooks.get()
    if not result or not result.value:
        return []
    return [_notebook_to_dict(nb) for nb in result.value]


async def find_notebook_id(client: GraphServiceClient, display_name: str) -> str:
    """Return the id of the notebook with exactly this display name."""
    for notebook in await list_notebooks(client):
        if notebook["displayName"] == display_name:
            return notebook["id"]
    raise LookupError(f'Notebook "{display_name}" not found')


def _notebook_to_dict(nb) -> dict:
    return {
        "id": nb.id,
        "displayName": nb.display_name,
        "createdDateTime": nb.created_date_time.isoformat() if nb.created_date_time else None,
        "lastModifiedDateTime": nb.last_modified_date_time.isoformat() if nb.last_modified_date_time else None,
        "isShared": nb.is_shared,
    }
