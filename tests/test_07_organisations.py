"""
Organisations API tests
=======================
  - Admin-only create / patch / delete, readable by every login
  - Optional logo image: upload, URL, replacement, removal
  - Linked initiatives in the read model
"""

from __future__ import annotations

import pytest

from tests.samples import PDF, PNG, SVG

pytestmark = pytest.mark.asyncio


def files_in(directory) -> list[str]:
    return sorted(p.name for p in directory.glob("*"))


def asset_id(public_path: str) -> str:
    return public_path.rsplit("/", 1)[1]


async def create(client, name: str = "Green Org", **files) -> dict:
    r = await client.post("/api/organisation/create", data={"name": name}, files=files or None)
    assert r.status_code == 201, r.text
    return r.json()["data"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. Create
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestCreate:
    async def test_name_only(self, admin):
        r = await admin.post("/api/organisation/create", json={"name": " Green Org "})
        assert r.status_code == 201
        organisation = r.json()["data"]
        assert organisation["id"].startswith("green-org-")
        assert organisation["name"] == "Green Org"
        assert organisation["image"] is None
        assert organisation["website"] is None
        assert organisation["initiatives"] == []

    async def test_with_logo_upload(self, admin, data_dir):
        organisation = await create(admin, image=("logo.png", PNG, "image/png"))
        assert organisation["image"].startswith("/api/user-content/image/")
        assert files_in(data_dir / "image") == [asset_id(organisation["image"])]

    async def test_with_logo_url_and_website(self, admin, remote):
        remote.add("https://cdn.example.org/logo.svg", SVG)
        r = await admin.post("/api/organisation/create", json={
            "name": "Green Org",
            "image": "https://cdn.example.org/logo.svg",
            "website": "HTTPS://example.com/about",
        })
        organisation = r.json()["data"]
        assert organisation["image"].endswith(".svg")
        assert organisation["website"] == "https://example.com/about"

    async def test_blank_image_means_none(self, admin):
        r = await admin.post("/api/organisation/create", json={"name": "Green Org", "image": ""})
        assert r.status_code == 201
        assert r.json()["data"]["image"] is None

    async def test_logo_must_be_an_image(self, admin, data_dir):
        r = await admin.post(
            "/api/organisation/create",
            data={"name": "Green Org"},
            files={"image": ("logo.pdf", PDF, "application/pdf")},
        )
        assert r.status_code == 400
        assert r.json()["error"] == "fetch-error"
        assert files_in(data_dir / "image") == []

    @pytest.mark.parametrize("name,error", [
        ("Org", "name-too-short"),
        ("<script>", "name-invalid-characters"),
    ])
    async def test_invalid_name(self, admin, name, error):
        r = await admin.post("/api/organisation/create", json={"name": name})
        assert r.json()["error"] == error

    async def test_users_cannot_create(self, user):
        r = await user.post("/api/organisation/create", json={"name": "Green Org"})
        assert r.status_code == 401


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. Read
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestRead:
    async def test_list_sorted_for_users(self, admin, user):
        for name in ("Zulu Group", "Group 10", "Group 9"):
            await create(admin, name)
        r = await user.get("/api/organisations")
        assert [o["name"] for o in r.json()["data"]] == ["Group 9", "Group 10", "Zulu Group"]

    async def test_missing(self, user):
        r = await user.get("/api/organisation/nope")
        assert r.status_code == 404
        assert r.json()["readableError"] == "Organisation does not exist."


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. Patch
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestPatch:
    async def test_rename_and_website(self, admin):
        organisation = await create(admin)
        r = await admin.patch(f"/api/organisation/{organisation['id']}", json={
            "name": "Blue Org", "website": "https://example.com/blue",
        })
        data = r.json()["data"]
        assert data["name"] == "Blue Org"
        assert data["website"] == "https://example.com/blue"
        assert data["id"] == organisation["id"]

    async def test_replace_logo(self, admin, data_dir):
        organisation = await create(admin, image=("logo.png", PNG, "image/png"))
        r = await admin.patch(
            f"/api/organisation/{organisation['id']}",
            files={"image": ("logo.svg", SVG, "image/svg+xml")},
        )
        image = asset_id(r.json()["data"]["image"])
        assert image.endswith(".svg")
        assert files_in(data_dir / "image") == [image]

    async def test_remove_logo(self, admin, data_dir):
        organisation = await create(admin, image=("logo.png", PNG, "image/png"))
        r = await admin.patch(f"/api/organisation/{organisation['id']}", json={"image": "null"})
        assert r.json()["data"]["image"] is None
        assert files_in(data_dir / "image") == []

    async def test_untouched_logo_stays(self, admin, data_dir):
        organisation = await create(admin, image=("logo.png", PNG, "image/png"))
        r = await admin.patch(f"/api/organisation/{organisation['id']}", json={"name": "Blue Org"})
        assert r.json()["data"]["image"] == organisation["image"]
        assert files_in(data_dir / "image") == [asset_id(organisation["image"])]

    async def test_empty_patch(self, admin):
        organisation = await create(admin)
        r = await admin.patch(f"/api/organisation/{organisation['id']}", json={})
        assert r.json()["data"] == organisation

    async def test_missing(self, admin):
        r = await admin.patch("/api/organisation/nope", json={"name": "Blue Org"})
        assert r.status_code == 404

    async def test_users_cannot_patch(self, admin, user):
        organisation = await create(admin)
        r = await user.patch(f"/api/organisation/{organisation['id']}", json={"name": "Blue Org"})
        assert r.status_code == 401


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. Delete
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestDelete:
    async def test_delete_removes_logo(self, admin, data_dir):
        organisation = await create(admin, image=("logo.png", PNG, "image/png"))
        r = await admin.delete(f"/api/organisation/{organisation['id']}")
        assert r.json() == {"type": "success"}
        assert files_in(data_dir / "image") == []
        assert (await admin.get(f"/api/organisation/{organisation['id']}")).status_code == 404

    async def test_delete_unlinks_initiatives(self, admin):
        organisation = await create(admin)
        r = await admin.post(
            "/api/initiative/create",
            data={"shortName": "Clean Water Now", "fullName": "Clean drinking water for all"},
            files={"pdf": ("t.pdf", PDF, "application/pdf")},
        )
        initiative = r.json()["data"]
        await admin.put(f"/api/initiative/{initiative['id']}/organisation/{organisation['id']}")

        await admin.delete(f"/api/organisation/{organisation['id']}")

        r = await admin.get(f"/api/initiative/{initiative['id']}")
        assert r.json()["data"]["organisations"] == []

    async def test_delete_missing(self, admin):
        assert (await admin.delete("/api/organisation/nope")).status_code == 404
