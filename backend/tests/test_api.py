import os
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from meshvocab.main import app
from meshvocab.services.vocabulary_service import reset_vocabulary


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    reset_vocabulary()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    reset_vocabulary()


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_status_then_warmup(client: AsyncClient):
    resp = await client.get("/api/vocabulary/status")
    assert resp.status_code == 200
    assert resp.json()["loaded"] is False

    resp = await client.post("/api/vocabulary/warmup")
    assert resp.status_code == 200
    data = resp.json()
    assert data["loaded"] is True
    assert data["record_count"] == 3
    assert data["tree_node_count"] == 15


@pytest.mark.anyio
async def test_record_by_tree_number(client: AsyncClient):
    resp = await client.get("/api/vocabulary/records/tree/A01.923.047")
    assert resp.status_code == 200
    data = resp.json()
    assert data["ui"] == "D000005"
    assert data["heading"] == "Abdomen"
    assert data["tree_numbers"] == ["A01.923.047", "A01.923"]
    assert data["entries"] == ["Abdomens", "Abdominal Cavity"]


@pytest.mark.anyio
async def test_record_by_ui(client: AsyncClient):
    resp = await client.get("/api/vocabulary/records/ui/D000001")
    assert resp.status_code == 200
    assert resp.json()["heading"] == "Calcimycin"


@pytest.mark.anyio
async def test_record_not_found(client: AsyncClient):
    resp = await client.get("/api/vocabulary/records/tree/Z99.999")
    assert resp.status_code == 404
    resp = await client.get("/api/vocabulary/records/ui/D999999")
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_descendants(client: AsyncClient):
    resp = await client.get("/api/vocabulary/tree/descendants", params={"prefix": "A01.923"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["found"] is True
    assert data["descendants"] == ["A01.923.047", "A01.923.047.600"]
    assert data["total"] == 2


@pytest.mark.anyio
async def test_descendants_unknown_prefix(client: AsyncClient):
    resp = await client.get("/api/vocabulary/tree/descendants", params={"prefix": "Q01"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["found"] is False
    assert data["descendants"] == []


@pytest.mark.anyio
async def test_descendants_requires_prefix(client: AsyncClient):
    resp = await client.get("/api/vocabulary/tree/descendants")
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_unavailable_vocabulary(client: AsyncClient):
    with patch.dict(os.environ, {"MESH_DESCRIPTOR_FILE": "", "MESH_TREE_FILE": ""}):
        resp = await client.get("/api/vocabulary/records/ui/D000001")
        assert resp.status_code == 503
        assert "No MeSH files configured" in resp.json()["detail"]

        resp = await client.post("/api/vocabulary/warmup")
        assert resp.status_code == 200
        assert resp.json()["loaded"] is False
        assert resp.json()["error"]
