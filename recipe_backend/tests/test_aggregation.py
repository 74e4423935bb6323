import pydantic
import pytest

from catalog.aggregation import decorate
from catalog.models import Comment


@pytest.fixture()
def recipe(service, alice, make_draft):
    return service.create_recipe(make_draft(), alice.id)


def test_unrated_recipe_has_zero_average(service, recipe):
    view = service.get_recipe(recipe.id)
    assert view.average_rating == 0.0
    assert view.ratings_count == 0
    assert view.favorites_count == 0
    assert view.comments_count == 0


def test_rating_again_replaces_the_previous_value(service, recipe, bob):
    service.rate_recipe(recipe.id, bob.id, 2)
    assert service.get_recipe(recipe.id).average_rating == 2.0

    service.rate_recipe(recipe.id, bob.id, 5)
    view = service.get_recipe(recipe.id)
    assert view.average_rating == 5.0
    assert view.ratings_count == 1


def test_two_users_rating_then_one_deleting(service, recipe, alice, bob):
    service.rate_recipe(recipe.id, alice.id, 2)
    service.rate_recipe(recipe.id, bob.id, 4)
    view = service.get_recipe(recipe.id)
    assert view.average_rating == 3.0
    assert view.ratings_count == 2

    service.delete_my_rating(recipe.id, alice.id)
    view = service.get_recipe(recipe.id)
    assert view.average_rating == 4.0
    assert view.ratings_count == 1


def test_favorite_round_trip_restores_count(service, recipe, alice, bob):
    service.add_favorite(recipe.id, bob.id)
    before = service.get_recipe(recipe.id).favorites_count

    service.add_favorite(recipe.id, alice.id)
    service.add_favorite(recipe.id, alice.id)
    assert service.get_recipe(recipe.id).favorites_count == before + 1

    service.remove_favorite(recipe.id, alice.id)
    service.remove_favorite(recipe.id, alice.id)
    assert service.get_recipe(recipe.id).favorites_count == before


def test_is_favorite_depends_on_viewer(service, recipe, alice, bob):
    service.add_favorite(recipe.id, alice.id)
    assert service.get_recipe(recipe.id, alice.id).is_favorite is True
    assert service.get_recipe(recipe.id, bob.id).is_favorite is False
    assert service.get_recipe(recipe.id).is_favorite is False


def test_comments_are_counted(db, service, recipe, alice, bob):
    db.add_all([
        Comment(user_id=alice.id, recipe_id=recipe.id, body="Lovely"),
        Comment(user_id=bob.id, recipe_id=recipe.id, body="Too salty"),
    ])
    db.flush()
    assert service.get_recipe(recipe.id).comments_count == 2


def test_listing_and_detail_agree(service, alice, bob, make_draft):
    first = service.create_recipe(make_draft(title="First"), alice.id)
    second = service.create_recipe(make_draft(title="Second"), bob.id)
    service.rate_recipe(first.id, bob.id, 4)
    service.rate_recipe(second.id, alice.id, 1)
    service.add_favorite(second.id, alice.id)

    listed = service.list_recipes(viewer=alice.id)
    assert [v.id for v in listed] == [first.id, second.id]
    for view in listed:
        assert view == service.get_recipe(view.id, alice.id)
    assert listed[1].is_favorite is True
    assert listed[0].favorites_count == 0


def test_decorate_nothing(db):
    assert decorate(db, []) == []


def test_views_are_immutable(service, recipe):
    view = service.get_recipe(recipe.id)
    with pytest.raises(pydantic.ValidationError):
        view.average_rating = 5.0
