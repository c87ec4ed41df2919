"""Tests for resolving a section id from notebook and section names."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from onenote_diagrams.onenote import notebooks, sections


def _item(id, name):
    return SimpleNamespace(
        id=id,
        display_name=name,
        created_date_time=None,
        last_modified_date_time=None,
        is_shared=False,
    )


@pytest.fixture
def client():
    client = MagicMock()
    client.me.onenote.notebooks.get = AsyncMock(
        return_value=SimpleNamespace(value=[_item("nb-1", "Work"), _item("nb-2", "Home")])
    )
    client.me.onenote.notebooks.by_notebook_id.return_value.sections.get = AsyncMock(
        return_value=SimpleNamespace(value=[_item("sec-1", "Designs"), _item("sec-2", "Notes")])
    )
    return client


class TestListNotebooks:
    @pytest.mark.asyncio
    async def test_normalized(self, client):
        result = await notebooks.list_notebooks(client)
        assert [nb["displayName"] for nb in result] == ["Work", "Home"]
        assert result[0]["id"] == "nb-1"

    @pytest.mark.asyncio
    async def test_empty_response(self, client):
        client.me.onenote.notebooks.get = AsyncMock(return_value=None)
        assert await notebooks.list_notebooks(client) == []


class TestFindSectionId:
    @pytest.mark.asyncio
    async def test_resolves_by_names(self, client):
        assert await sections.find_section_id(client, "Work", "Designs") == "sec-1"
        client.me.onenote.notebooks.by_notebook_id.assert_called_with("nb-1")

    @pytest.mark.asyncio
    async def test_unknown_notebook(self, client):
        with pytest.raises(LookupError, match='Notebook "Play" not found'):
            await sections.find_section_id(client, "Play", "Designs")

    @pytest.mark.asyncio
    async def test_unknown_section(self, client):
        with pytest.raises(LookupError, match='Section "Ideas" not found in notebook "Work"'):
            await sections.find_section_id(client, "Work", "Ideas")

    @pytest.mark.asyncio
    async def test_match_is_exact(self, client):
        with pytest.raises(LookupError):
            await sections.find_section_id(client, "work", "Designs")
