import pytest

from pantry_app.modules.shopping_lists.service import ShoppingListService, normalize_quantity, normalize_unit
from tests.conftest import FakeSupabase, csrf_headers

BASE = "/api/v1/shopping-list"


def _add(client, **payload):
    return client.post(f"{BASE}/items", json=payload, headers=csrf_headers(client))


@pytest.mark.parametrize("quantity, expected", [(None, 1), (0, 1), (-2, 1), (0.5, 0.5), (3, 3)])
def test_normalize_quantity(quantity, expected):
    assert normalize_quantity(quantity) == expected


@pytest.mark.parametrize("unit, expected", [(None, None), ("", None), ("  ", None), (" kg ", "kg")])
def test_normalize_unit(unit, expected):
    assert normalize_unit(unit) == expected


def test_list_is_created_on_first_use(signed_in, backend):
    response = signed_in.get(BASE)
    assert response.status_code == 200
    body = response.json()
    assert body["shopping_list"]["name"] == "Weekly Shopping"
    assert body["shopping_list"]["list_type"] == "shopping"
    assert body["items"] == []

    signed_in.get(BASE)
    assert len(backend.rows("lists")) == 1


def test_existing_list_type_matches_case_insensitively(signed_in, backend):
    group_id = signed_in.get("/api/v1/households/current").json()["group_id"]
    backend.seed("lists", group_id=group_id, name="Groceries", list_type="Shopping")

    assert signed_in.get(BASE).json()["shopping_list"]["name"] == "Groceries"
    assert len(backend.rows("lists")) == 1


def test_add_custom_item_normalizes_quantity_and_unit(signed_in):
    response = _add(signed_in, custom_name="  milk ", quantity=0, unit="  ")
    assert response.status_code == 201
    item = response.json()
    assert item["custom_name"] == "milk"
    assert item["display_name"] == "milk"
    assert item["quantity"] == 1
    assert item["unit"] is None
    assert item["is_checked"] is False


def test_add_requires_exactly_one_source(signed_in):
    assert _add(signed_in, custom_name="   ").status_code == 422
    assert _add(signed_in, custom_name="milk", item_id="x").status_code == 422


def test_add_catalog_item_uses_catalog_name(signed_in, backend):
    backend.seed("item_catalog", item_id="cat-1", name="Oat Milk", brand="Oatly")

    response = _add(signed_in, item_id="cat-1", quantity=2, unit="l")
    assert response.status_code == 201
    assert response.json()["display_name"] == "Oat Milk"
    assert response.json()["brand"] == "Oatly"

    assert _add(signed_in, item_id="missing").status_code == 404


def test_catalog_is_sorted_by_name(signed_in, backend):
    backend.seed("item_catalog", item_id="b", name="bread")
    backend.seed("item_catalog", item_id="a", name="Apples")
    names = [c["name"] for c in signed_in.get(f"{BASE}/catalog").json()]
    assert names == ["Apples", "bread"]


def test_items_sort_unchecked_first_then_by_name(signed_in):
    ids = {}
    for name in ("eggs", "bread", "apples"):
        ids[name] = _add(signed_in, custom_name=name).json()["list_item_id"]

    toggled = signed_in.post(f"{BASE}/items/{ids['apples']}/toggle", headers=csrf_headers(signed_in))
    assert toggled.status_code == 200
    assert toggled.json()["is_checked"] is True

    names = [i["display_name"] for i in signed_in.get(BASE).json()["items"]]
    assert names == ["bread", "eggs", "apples"]


def test_update_quantity_and_unit(signed_in):
    item_id = _add(signed_in, custom_name="flour").json()["list_item_id"]

    response = signed_in.put(
        f"{BASE}/items/{item_id}", json={"quantity": 2.5, "unit": " kg "}, headers=csrf_headers(signed_in)
    )
    assert response.status_code == 200
    assert response.json()["quantity"] == 2.5
    assert response.json()["unit"] == "kg"


def test_delete_item(signed_in, backend):
    item_id = _add(signed_in, custom_name="flour").json()["list_item_id"]

    assert signed_in.delete(f"{BASE}/items/{item_id}", headers=csrf_headers(signed_in)).status_code == 204
    assert backend.rows("list_items") == []
    assert signed_in.delete(f"{BASE}/items/{item_id}", headers=csrf_headers(signed_in)).status_code == 404


def test_items_on_another_households_list_are_not_found(signed_in, backend):
    other = backend.seed("lists", group_id="someone-else", name="Theirs", list_type="shopping")
    foreign = backend.seed("list_items", list_id=other["list_id"], custom_name="caviar", quantity=1, is_checked=False)

    toggled = signed_in.post(f"{BASE}/items/{foreign['list_item_id']}/toggle", headers=csrf_headers(signed_in))
    assert toggled.status_code == 404
    assert foreign["is_checked"] is False


def test_mutations_require_csrf(signed_in):
    response = signed_in.post(f"{BASE}/items", json={"custom_name": "milk"})
    assert response.status_code == 400


def test_get_user_group_id(backend):
    service = ShoppingListService(FakeSupabase(backend))
    assert service.get_user_group_id("u1") is None

    backend.seed("group_members", group_id="g1", user_id="u1", role="owner")
    assert service.get_user_group_id("u1") == "g1"
