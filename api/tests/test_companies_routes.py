from __future__ import annotations

from fastapi.testclient import TestClient


def test_create_company_as_admin(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post(
        "/companies",
        json={"handle": "new", "name": "New", "description": "DescNew", "numEmployees": 10, "logoUrl": "http://new.img"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json() == {
        "company": {
            "handle": "new",
            "name": "New",
            "description": "DescNew",
            "numEmployees": 10,
            "logoUrl": "http://new.img",
        }
    }


def test_create_company_denies_non_admin(client: TestClient, u1_headers: dict[str, str]) -> None:
    response = client.post("/companies", json={"handle": "new", "name": "New"}, headers=u1_headers)
    assert response.status_code == 401


def test_create_company_rejects_duplicate(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post("/companies", json={"handle": "c1", "name": "Again"}, headers=admin_headers)
    assert response.status_code == 400
    assert "Duplicate company" in response.json()["detail"]


def test_create_company_rejects_unknown_fields(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post(
        "/companies",
        json={"handle": "new", "name": "New", "ceo": "someone"},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_list_companies_for_anon(client: TestClient) -> None:
    response = client.get("/companies")

    assert response.status_code == 200
    assert [company["handle"] for company in response.json()["companies"]] == ["c1", "c2", "c3"]


def test_list_companies_with_filters(client: TestClient) -> None:
    response = client.get("/companies", params={"nameLike": "c", "minEmployees": 2, "maxEmployees": 2})

    assert response.status_code == 200
    assert [company["handle"] for company in response.json()["companies"]] == ["c2"]


def test_list_companies_rejects_inverted_range(client: TestClient) -> None:
    response = client.get("/companies", params={"minEmployees": 3, "maxEmployees": 1})

    assert response.status_code == 400
    assert response.json()["detail"] == "minEmployees cannot be greater than maxEmployees"


def test_list_companies_rejects_non_integer_bound(client: TestClient) -> None:
    response = client.get("/companies", params={"minEmployees": "many"})
    assert response.status_code == 422


def test_get_company_includes_jobs(client: TestClient) -> None:
    response = client.get("/companies/c1")

    assert response.status_code == 200
    company = response.json()["company"]
    assert company["numEmployees"] == 1
    assert company["jobs"] == [{"id": 1, "title": "j1", "salary": 10, "equity": "0"}]


def test_get_company_not_found(client: TestClient) -> None:
    assert client.get("/companies/nope").status_code == 404


def test_patch_company_forwards_wire_field_names(
    client: TestClient,
    fake_repo,
    admin_headers: dict[str, str],
) -> None:
    response = client.patch(
        "/companies/c1",
        json={"numEmployees": 42, "logoUrl": None},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert fake_repo.last_update == {"numEmployees": 42, "logoUrl": None}
    assert response.json()["company"]["numEmployees"] == 42
    assert response.json()["company"]["logoUrl"] is None


def test_patch_company_with_empty_body(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/companies/c1", json={}, headers=admin_headers)
    assert response.status_code == 400


def test_patch_company_rejects_null_name(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/companies/c1", json={"name": None}, headers=admin_headers)
    assert response.status_code == 422


def test_patch_company_denies_anon(client: TestClient) -> None:
    assert client.patch("/companies/c1", json={"name": "X"}).status_code == 401


def test_patch_company_not_found(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/companies/nope", json={"name": "X"}, headers=admin_headers)
    assert response.status_code == 404


def test_delete_company(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.delete("/companies/c1", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"deleted": "c1"}
    assert client.get("/companies/c1").status_code == 404


def test_delete_company_denies_non_admin(client: TestClient, u1_headers: dict[str, str]) -> None:
    assert client.delete("/companies/c1", headers=u1_headers).status_code == 401
