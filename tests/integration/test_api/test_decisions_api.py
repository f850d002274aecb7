"""Integration tests for decision ledger endpoints."""

from httpx import AsyncClient

VISITOR = {"X-Visitor-Id": "visitor-abc"}

SNAPSHOT = {
    "event_id": "ny-general-abc",
    "measure_decisions": {"prop-1": {"decision": "yes", "note": "Parks"}, "prop-2": {"decision": "undecided"}},
    "candidate_selections": {"mayor": "cand-7"},
    "notes": {"general": "Bring ID"},
}


class TestDecisionsApi:
    """PUT/GET/DELETE /api/v1/decisions"""

    async def test_put_then_get(self, client: AsyncClient) -> None:
        put = await client.put("/api/v1/decisions/ballot-1", json=SNAPSHOT, headers=VISITOR)
        assert put.status_code == 200
        assert put.json()["ballot_id"] == "ballot-1"

        got = await client.get("/api/v1/decisions/ballot-1", headers=VISITOR)
        assert got.status_code == 200
        body = got.json()
        assert body["measure_decisions"]["prop-1"] == {"decision": "yes", "note": "Parks"}
        assert body["candidate_selections"] == {"mayor": "cand-7"}
        assert body["event_id"] == "ny-general-abc"

    async def test_put_replaces(self, client: AsyncClient) -> None:
        await client.put("/api/v1/decisions/ballot-1", json=SNAPSHOT, headers=VISITOR)
        await client.put("/api/v1/decisions/ballot-1", json={"candidate_selections": {}}, headers=VISITOR)

        body = (await client.get("/api/v1/decisions/ballot-1", headers=VISITOR)).json()
        assert body["measure_decisions"] == {}
        assert body["candidate_selections"] == {}

    async def test_invalid_decision_value(self, client: AsyncClient) -> None:
        resp = await client.put(
            "/api/v1/decisions/ballot-1",
            json={"measure_decisions": {"prop-1": {"decision": "maybe"}}},
            headers=VISITOR,
        )
        assert resp.status_code == 422

    async def test_get_missing(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/decisions/ballot-1", headers=VISITOR)
        assert resp.status_code == 404

    async def test_requires_identity(self, client: AsyncClient) -> None:
        resp = await client.put("/api/v1/decisions/ballot-1", json=SNAPSHOT)
        assert resp.status_code == 400

    async def test_signed_in_user_does_not_see_visitor_decisions(
        self, client: AsyncClient, user_headers: dict[str, str]
    ) -> None:
        await client.put("/api/v1/decisions/ballot-1", json=SNAPSHOT, headers=VISITOR)
        resp = await client.get("/api/v1/decisions/ballot-1", headers={**user_headers, **VISITOR})
        assert resp.status_code == 404

    async def test_clear(self, client: AsyncClient) -> None:
        await client.put("/api/v1/decisions/ballot-1", json=SNAPSHOT, headers=VISITOR)
        await client.put("/api/v1/decisions/ballot-2", json=SNAPSHOT, headers=VISITOR)

        one = await client.delete("/api/v1/decisions", params={"ballot_id": "ballot-1"}, headers=VISITOR)
        assert one.json() == {"deleted": 1}
        rest = await client.delete("/api/v1/decisions", headers=VISITOR)
        assert rest.json() == {"deleted": 1}
        assert (await client.get("/api/v1/decisions/ballot-2", headers=VISITOR)).status_code == 404
