import base64

import orjson
import pytest
from httpx import ASGITransport, AsyncClient

from tests.factories import ADMIN


def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


def _profile_body(**overrides):
    body = {
        "name": "Sam Staff",
        "email": "sam@campus.edu",
        "role": "staff",
        "department": "IT Services",
        "yearOrPosition": "Technician",
        "skills": ["Networking"],
        "projects": [],
    }
    body.update(overrides)
    return body


@pytest.mark.anyio
async def test_create_profile_generates_id_and_lists_first(test_app):
    async with _client(test_app) as client:
        earlier = await client.post(
            "/profiles", json=_profile_body(name="Earlier Person"), auth=ADMIN
        )
        assert earlier.status_code == 200

        response = await client.post("/profiles", json=_profile_body(), auth=ADMIN)
        assert response.status_code == 200
        body = response.json()
        assert body["id"].startswith("user_")
        assert body["createdAt"] == body["updatedAt"]
        assert body["message"] == "Profile saved successfully"

        listing = await client.get("/profiles")
    assert listing.status_code == 200
    profiles = listing.json()
    assert [p["id"] for p in profiles][0] == body["id"]
    assert profiles[0]["role"] == "staff"
    assert profiles[0]["department"] == "IT Services"


@pytest.mark.anyio
async def test_get_profiles_empty_store(test_app):
    async with _client(test_app) as client:
        response = await client.get("/profiles")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.anyio
async def test_get_profiles_degrades_on_corrupt_file(test_app, data_path):
    data_path.parent.mkdir(parents=True, exist_ok=True)
    data_path.write_text("[{broken", encoding="utf-8")
    async with _client(test_app) as client:
        listing = await client.get("/profiles")
        save = await client.post("/profiles", json=_profile_body(), auth=ADMIN)
    assert listing.status_code == 200
    assert listing.json() == []
    assert save.status_code == 500
    assert save.json()["error"] == "storage_error"


@pytest.mark.anyio
async def test_invalid_record_does_not_hide_others(test_app, data_path):
    data_path.parent.mkdir(parents=True, exist_ok=True)
    good = {**_profile_body(), "id": "good"}
    bad = {**_profile_body(name="Bad Record", role="admin", skills=[1, 2]), "id": "bad"}
    data_path.write_bytes(orjson.dumps([good, bad]))
    async with _client(test_app) as client:
        listing = await client.get("/profiles")
        save = await client.post(
            "/profiles", json=_profile_body(name="New Person"), auth=ADMIN
        )
        removed = await client.delete("/profiles", params={"id": "bad"}, auth=ADMIN)
    assert [p["id"] for p in listing.json()] == ["good"]
    assert save.status_code == 200
    assert removed.status_code == 200
    ids = {record["id"] for record in orjson.loads(data_path.read_bytes())}
    assert ids == {"good", save.json()["id"]}


@pytest.mark.anyio
async def test_update_keeps_single_record(test_app):
    async with _client(test_app) as client:
        created = (await client.post("/profiles", json=_profile_body(), auth=ADMIN)).json()
        updated = await client.post(
            "/profiles",
            json=_profile_body(id=created["id"], name="Samantha Staff"),
            auth=ADMIN,
        )
        listing = (await client.get("/profiles")).json()
    assert updated.status_code == 200
    assert updated.json()["createdAt"] == created["createdAt"]
    assert len(listing) == 1
    assert listing[0]["name"] == "Samantha Staff"


@pytest.mark.anyio
async def test_get_profile_by_id(test_app):
    async with _client(test_app) as client:
        created = (await client.post("/profiles", json=_profile_body(), auth=ADMIN)).json()
        found = await client.get(f"/profiles/{created['id']}")
        missing = await client.get("/profiles/nope")
    assert found.status_code == 200
    assert found.json()["email"] == "sam@campus.edu"
    assert missing.status_code == 404
    assert missing.json() == {"error": "not_found", "id": "nope"}


@pytest.mark.anyio
async def test_mutations_require_admin(test_app):
    async with _client(test_app) as client:
        anonymous = await client.post("/profiles", json=_profile_body())
        wrong = await client.post(
            "/profiles", json=_profile_body(), auth=("admin@campus.edu", "guess")
        )
        delete = await client.delete("/profiles", params={"id": "x"})
        form = await client.get("/admin/profiles/x/form")
    for response in (anonymous, wrong, delete, form):
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
    assert anonymous.headers["www-authenticate"] == "Basic"


@pytest.mark.anyio
async def test_malformed_profile_body_is_client_error(test_app):
    async with _client(test_app) as client:
        invalid_json = await client.post(
            "/profiles",
            content="not valid json",
            headers={"Content-Type": "application/json"},
            auth=ADMIN,
        )
        bad_role = await client.post(
            "/profiles", json=_profile_body(role="dean"), auth=ADMIN
        )
        missing_name = await client.post(
            "/profiles", json=_profile_body(name=""), auth=ADMIN
        )
    assert invalid_json.status_code == 400
    assert invalid_json.json()["error"] == "invalid_json"
    for response in (bad_role, missing_name):
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


@pytest.mark.anyio
async def test_payload_too_large_error_structured(test_app, settings):
    original_limit = settings.max_payload_bytes
    settings.max_payload_bytes = 10
    try:
        async with _client(test_app) as client:
            response = await client.post("/profiles", json=_profile_body(), auth=ADMIN)
        assert response.status_code == 413
        body = response.json()
        assert body["error"] == "payload_too_large"
        assert body["limit_bytes"] == 10
    finally:
        settings.max_payload_bytes = original_limit


@pytest.mark.anyio
async def test_delete_profile(test_app):
    async with _client(test_app) as client:
        created = (await client.post("/profiles", json=_profile_body(), auth=ADMIN)).json()
        missing_id = await client.delete("/profiles", auth=ADMIN)
        deleted = await client.delete("/profiles", params={"id": created["id"]}, auth=ADMIN)
        again = await client.delete("/profiles", params={"id": created["id"]}, auth=ADMIN)
        listing = (await client.get("/profiles")).json()

    assert missing_id.status_code == 400
    assert missing_id.json()["error"] == "missing_id"
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "Profile deleted successfully"}
    assert again.status_code == 404
    assert again.json()["error"] == "not_found"
    assert listing == []


@pytest.mark.anyio
async def test_search_endpoint_filters_and_pages(test_app):
    async with _client(test_app) as client:
        for i in range(10):
            await client.post(
                "/profiles",
                json=_profile_body(name=f"Person {i}", department="CS", role="teacher"),
                auth=ADMIN,
            )
        await client.post(
            "/profiles",
            json=_profile_body(name="John Doe", department="CS", role="student",
                               skills=["Python"]),
            auth=ADMIN,
        )

        first = (await client.get("/profiles/search", params={"role": "teacher"})).json()
        second = (
            await client.get("/profiles/search", params={"role": "teacher", "more": 1})
        ).json()
        third = (
            await client.get("/profiles/search", params={"role": "teacher", "more": 2})
        ).json()
        search = (await client.get("/profiles/search", params={"q": "jo"})).json()
        combined = (
            await client.get(
                "/profiles/search", params={"department": "CS", "role": "student"}
            )
        ).json()
        none = (await client.get("/profiles/search", params={"alpha": "Z"})).json()
        long_alpha = await client.get("/profiles/search", params={"alpha": "Jo"})
        negative = await client.get("/profiles/search", params={"more": -1})

    assert (first["total"], first["shown"], first["hasMore"]) == (10, 6, True)
    assert (second["shown"], third["shown"], third["hasMore"]) == (9, 10, False)
    assert [p["name"] for p in search["profiles"]] == ["John Doe"]
    assert [p["name"] for p in combined["profiles"]] == ["John Doe"]
    assert none == {"total": 0, "shown": 0, "hasMore": False, "profiles": []}
    assert negative.status_code == 400
    assert long_alpha.status_code == 400


@pytest.mark.anyio
async def test_admin_form_roundtrip(test_app):
    image_bytes = b"\x89PNG fake image"
    form = {
        "name": "Ada Teacher",
        "email": "ada@campus.edu",
        "role": "teacher",
        "department": "Mathematics",
        "yearOrPosition": "Senior Lecturer",
        "skills": "Python, Go,  Rust ",
        "publications": "Paper A, , Paper B",
        "image": {
            "kind": "file",
            "data": base64.b64encode(image_bytes).decode(),
            "mimeType": "image/png",
        },
    }
    async with _client(test_app) as client:
        saved = await client.post("/admin/profiles", json=form, auth=ADMIN)
        assert saved.status_code == 200
        profile = saved.json()
        hydrated = await client.get(f"/admin/profiles/{profile['id']}/form", auth=ADMIN)
        missing = await client.get("/admin/profiles/nope/form", auth=ADMIN)
        invalid = await client.post(
            "/admin/profiles", json={"name": "No Email"}, auth=ADMIN
        )

    assert profile["skills"] == ["Python", "Go", "Rust"]
    assert profile["publications"] == ["Paper A", "Paper B"]
    assert profile["image"].startswith("data:image/png;base64,")
    assert profile["phone"] is None

    assert hydrated.status_code == 200
    form_state = hydrated.json()
    assert form_state["skills"] == "Python, Go, Rust"
    assert form_state["phone"] == ""
    assert form_state["image"]["kind"] == "file"
    assert base64.b64decode(form_state["image"]["data"]) == image_bytes

    assert missing.status_code == 404
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "validation_error"


@pytest.mark.anyio
async def test_filter_options(test_app):
    async with _client(test_app) as client:
        response = await client.get("/filters")
    body = response.json()
    assert "IT Services" in body["departments"]
    assert body["roles"] == ["student", "teacher", "staff"]
    assert body["alphabet"][0] == "A" and len(body["alphabet"]) == 26


@pytest.mark.anyio
async def test_settings_defaults_and_echo(test_app):
    async with _client(test_app) as client:
        current = await client.get("/settings")
        echoed = await client.post(
            "/settings", json={"siteTitle": "Campus People"}, auth=ADMIN
        )
        after = await client.get("/settings")
        unauthenticated = await client.post("/settings", json={"siteTitle": "x"})
        unknown = await client.post(
            "/settings", json={"siteTitle": "x", "theme": "dark"}, auth=ADMIN
        )

    assert current.json()["siteTitle"] == "Campus Directory"
    assert echoed.json() == {
        "siteTitle": "Campus People",
        "message": "Settings saved successfully!",
    }
    # writes are not persisted
    assert after.json() == current.json()
    assert unauthenticated.status_code == 401
    assert unknown.status_code == 400
    assert unknown.json()["error"] == "validation_error"


@pytest.mark.anyio
async def test_healthz_endpoint(test_app):
    async with _client(test_app) as client:
        response = await client.get("/healthz")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["version"]
    assert body["profiles"] == 0
