import pytest


def recipe_payload(seeded, **overrides):
    payload = {
        "title": "Green Curry",
        "description": "Fragrant Thai curry.",
        "ingredients": [{"name": "Coconut milk", "amount": 400, "unit": "ml"}],
        "steps": [{"step": 1, "instruction": "Simmer everything."}],
        "cuisine": "Thai",
        "cooking_time": 25,
        "categories": [seeded.soups],
        "diet_tags": ["vegan"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def curry(client, seeded, auth_header):
    res = client.post("/recipes", json=recipe_payload(seeded), headers=auth_header(seeded.alice))
    assert res.status_code == 201
    return res.json()


def test_health_and_runtime_config(client):
    assert client.get("/").json() == {"message": "Healthy"}
    config = client.get("/config/runtime").json()
    assert config["jwt_algorithm"] == "HS256"
    assert "jwt_secret" not in config


def test_public_listing(client, curry):
    res = client.get("/recipes")
    assert res.status_code == 200
    [item] = res.json()
    assert item["id"] == curry["id"]
    assert item["average_rating"] == 0.0
    assert item["is_favorite"] is False


def test_create_requires_a_token(client, seeded):
    res = client.post("/recipes", json=recipe_payload(seeded))
    assert res.status_code == 401


def test_bad_token_is_rejected_even_on_public_routes(client):
    res = client.get("/recipes", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_create_sets_owner_from_token(client, seeded, auth_header):
    res = client.post(
        "/recipes",
        json=recipe_payload(seeded, user_id=seeded.bob),
        headers=auth_header(seeded.alice),
    )
    assert res.status_code == 201
    body = res.json()
    assert body["user_id"] == seeded.alice
    assert [c["slug"] for c in body["categories"]] == ["soups"]
    assert client.get(f"/recipes/{body['id']}").json()["title"] == "Green Curry"


def test_create_validation_errors(client, seeded, auth_header):
    res = client.post(
        "/recipes",
        json=recipe_payload(seeded, cooking_time=0, categories=[seeded.soups, 9999]),
        headers=auth_header(seeded.alice),
    )
    assert res.status_code == 422
    body = res.json()
    assert body["detail"] == "The given data was invalid."
    assert {e["field"] for e in body["errors"]} == {"cooking_time"}

    res = client.post(
        "/recipes",
        json=recipe_payload(seeded, categories=[9999]),
        headers=auth_header(seeded.alice),
    )
    assert res.status_code == 422
    assert res.json()["errors"][0]["rule"] == "exists"


def test_update_status_codes(client, seeded, auth_header, curry):
    url = f"/recipes/{curry['id']}"
    assert client.put(url, json={"title": "Stolen"}, headers=auth_header(seeded.bob)).status_code == 403
    assert client.put(url, json={"cooking_time": -1}, headers=auth_header(seeded.bob)).status_code == 403
    assert client.put("/recipes/9999", json={"title": "x"}, headers=auth_header(seeded.alice)).status_code == 404
    assert client.put(url, json={"cooking_time": -1}, headers=auth_header(seeded.alice)).status_code == 422

    res = client.put(url, json={"cooking_time": 35, "difficulty": "easy"}, headers=auth_header(seeded.alice))
    assert res.status_code == 200
    assert (res.json()["cooking_time"], res.json()["difficulty"]) == (35, "easy")
    assert res.json()["title"] == "Green Curry"


def test_delete_recipe(client, seeded, auth_header, curry):
    url = f"/recipes/{curry['id']}"
    assert client.delete(url, headers=auth_header(seeded.bob)).status_code == 403
    assert client.delete(url, headers=auth_header(seeded.alice)).status_code == 204
    assert client.get(url).status_code == 404
    assert client.delete(url, headers=auth_header(seeded.alice)).status_code == 404


def test_list_filters_from_query_string(client, seeded, auth_header, curry):
    client.post(
        "/recipes",
        json=recipe_payload(seeded, title="Brownies", cooking_time=50, diet_tags=["vegetarian"],
                            categories=[seeded.desserts]),
        headers=auth_header(seeded.bob),
    )

    def titles(query):
        return [r["title"] for r in client.get(f"/recipes?{query}").json()]

    assert titles("max_cooking_time=30") == ["Green Curry"]
    assert titles("max_cooking_time=&category=") == ["Green Curry", "Brownies"]
    assert titles(f"category={seeded.desserts}") == ["Brownies"]
    assert titles("diet_tags=vegan") == ["Green Curry"]
    assert titles("diet_tags=vegan,vegetarian") == []
    assert titles("search=BROWN") == ["Brownies"]
    assert titles("cuisine=thai") == ["Green Curry", "Brownies"]
    assert client.get("/recipes?max_cooking_time=soon").status_code == 422


def test_favorites_flow(client, seeded, auth_header, curry):
    url = f"/recipes/{curry['id']}/favorite"
    bob = auth_header(seeded.bob)

    assert client.get("/favorites").status_code == 401
    assert client.post(url, headers=bob).json() == {"message": "Recipe added to favorites"}
    assert client.post(url, headers=bob).status_code == 200
    assert client.get(url, headers=bob).json() == {"is_favorite": True}

    [favorite] = client.get("/favorites", headers=bob).json()
    assert favorite["id"] == curry["id"]
    assert favorite["favorites_count"] == 1
    assert client.get(f"/recipes/{curry['id']}", headers=bob).json()["is_favorite"] is True
    assert client.get(f"/recipes/{curry['id']}").json()["is_favorite"] is False

    assert client.delete(url, headers=bob).status_code == 204
    assert client.delete(url, headers=bob).status_code == 204
    assert client.get("/favorites", headers=bob).json() == []
    assert client.post("/recipes/9999/favorite", headers=bob).status_code == 404


def test_rating_flow(client, seeded, auth_header, curry):
    url = f"/recipes/{curry['id']}/rate"
    alice, bob = auth_header(seeded.alice), auth_header(seeded.bob)

    assert client.get(url, headers=bob).json() == {"rating": None}
    assert client.post(url, json={"rating": 2}, headers=alice).json()["rating"] == 2
    res = client.put(url, json={"rating": 4}, headers=bob)
    assert res.status_code == 200
    assert res.json()["user_id"] == seeded.bob

    detail = client.get(f"/recipes/{curry['id']}").json()
    assert (detail["average_rating"], detail["ratings_count"]) == (3.0, 2)

    assert client.delete(url, headers=alice).status_code == 204
    detail = client.get(f"/recipes/{curry['id']}").json()
    assert (detail["average_rating"], detail["ratings_count"]) == (4.0, 1)
    assert client.get(url, headers=bob).json() == {"rating": 4}


@pytest.mark.parametrize("body", [{"rating": 6}, {"rating": 0}, {}, None])
def test_invalid_ratings(client, seeded, auth_header, curry, body):
    res = client.post(f"/recipes/{curry['id']}/rate", json=body, headers=auth_header(seeded.bob))
    assert res.status_code == 422
    assert res.json()["errors"][0]["field"] == "rating"


def test_rating_missing_recipe_is_not_found(client, seeded, auth_header):
    res = client.post("/recipes/9999/rate", json={"rating": 9}, headers=auth_header(seeded.bob))
    assert res.status_code == 404
    assert res.json() == {"detail": "Recipe not found"}


def test_category_endpoints(client, seeded, auth_header):
    alice = auth_header(seeded.alice)
    assert [c["slug"] for c in client.get("/categories").json()] == ["desserts", "soups"]

    res = client.post("/categories", json={"name": "Street Food"}, headers=alice)
    assert res.status_code == 201
    created = res.json()
    assert created["slug"] == "street-food"

    assert client.post("/categories", json={"name": "street food"}, headers=alice).status_code == 422
    assert client.post("/categories", json={"name": "Snacks"}).status_code == 401

    res = client.put(f"/categories/{created['id']}", json={"description": "Hawker classics"}, headers=alice)
    assert res.json()["description"] == "Hawker classics"
    assert client.delete(f"/categories/{created['id']}", headers=alice).status_code == 204
    assert client.get(f"/categories/{created['id']}").status_code == 404


def test_timestamps_survive_the_round_trip(client, seeded, auth_header):
    created = client.post("/recipes", json=recipe_payload(seeded), headers=auth_header(seeded.alice)).json()
    fetched = client.get(f"/recipes/{created['id']}").json()
    assert fetched["created_at"] == created["created_at"]
    assert fetched["updated_at"] == created["updated_at"]

    rating = client.post(f"/recipes/{created['id']}/rate", json={"rating": 3}, headers=auth_header(seeded.bob))
    [listed] = client.get("/recipes").json()
    assert listed["created_at"] == created["created_at"]
    assert rating.json()["created_at"] == rating.json()["updated_at"]


@pytest.mark.parametrize(
    "query",
    ["max_cooking_time=99999999999999999999", "category=99999999999999999999", "difficulty=hrad"],
)
def test_unusable_filters_are_validation_errors(client, query):
    assert client.get(f"/recipes?{query}").status_code == 422


@pytest.mark.parametrize(
    "overrides",
    [{"cooking_time": 10**20}, {"categories": [10**20]}, {"steps": [{"step": 10**20, "instruction": "Wait"}]}],
)
def test_oversized_integers_in_drafts_are_validation_errors(client, seeded, auth_header, overrides):
    res = client.post("/recipes", json=recipe_payload(seeded, **overrides), headers=auth_header(seeded.alice))
    assert res.status_code == 422


def test_oversized_ids_in_paths_are_validation_errors(client, seeded, auth_header):
    assert client.get("/recipes/99999999999999999999").status_code == 422
    assert client.get("/categories/99999999999999999999").status_code == 422
    res = client.post("/recipes/99999999999999999999/rate", json={"rating": 3}, headers=auth_header(seeded.bob))
    assert res.status_code == 422


def test_boolean_rating_is_rejected(client, seeded, auth_header, curry):
    res = client.post(f"/recipes/{curry['id']}/rate", json={"rating": True}, headers=auth_header(seeded.bob))
    assert res.status_code == 422
    assert client.get(f"/recipes/{curry['id']}/rate", headers=auth_header(seeded.bob)).json() == {"rating": None}
