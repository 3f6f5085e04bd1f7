from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from tourbook.domain.users.entities import User
from tourbook.domain.users.exceptions import UserAlreadyExistsError
from tourbook.infrastructure.repositories.bookings import MongoBookingRepository
from tourbook.infrastructure.repositories.documents import MongoDocumentRepository
from tourbook.infrastructure.repositories.reviews import MongoReviewRepository
from tourbook.infrastructure.repositories.tours import MongoTourRepository, slugify
from tourbook.infrastructure.repositories.users import MongoUserRepository
from tourbook.shared.errors import DuplicateValueError


def collection(name: str = "things") -> MagicMock:
    mock = MagicMock()
    mock.name = name
    mock.insert_one.return_value = MagicMock(inserted_id=ObjectId())
    return mock


def cursor_over(documents: list[dict]) -> MagicMock:
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.__iter__.side_effect = lambda: iter(documents)
    return cursor


def duplicate(**key_value) -> DuplicateKeyError:
    return DuplicateKeyError("E11000 duplicate key", 11000, {"keyValue": key_value})


def test_invalid_id_short_circuits() -> None:
    things = collection()
    repo = MongoDocumentRepository(things)

    assert repo.find_one("not-an-id") is None
    assert repo.update("not-an-id", {"a": 1}) is None
    assert repo.delete("not-an-id") is False
    things.find_one.assert_not_called()
    things.find_one_and_update.assert_not_called()


def test_create_stamps_version_and_presents_ids() -> None:
    things = collection()
    created = MongoDocumentRepository(things).create({"name": "x"})

    inserted = things.insert_one.call_args.args[0]
    assert inserted["__v"] == 0
    assert "createdAt" in inserted
    assert created["id"] == created["_id"] == str(things.insert_one.return_value.inserted_id)
    assert isinstance(created["createdAt"], str)


def test_duplicate_key_is_reported_with_fields() -> None:
    things = collection()
    things.insert_one.side_effect = duplicate(name="The Forest Hiker")

    with pytest.raises(DuplicateValueError) as exc_info:
        MongoDocumentRepository(things).create({"name": "The Forest Hiker"})

    assert exc_info.value.context == {"fields": {"name": "The Forest Hiker"}}


def test_update_bumps_version() -> None:
    things = collection()
    oid = ObjectId()
    things.find_one_and_update.return_value = {"_id": oid, "name": "y", "__v": 1}

    updated = MongoDocumentRepository(things).update(str(oid), {"name": "y"})

    criteria, update = things.find_one_and_update.call_args.args
    assert criteria == {"_id": oid}
    assert update == {"$inc": {"__v": 1}, "$set": {"name": "y"}}
    assert updated["id"] == str(oid)


def test_delete_reports_missing_document() -> None:
    things = collection()
    things.find_one_and_delete.return_value = None

    assert MongoDocumentRepository(things).delete(str(ObjectId())) is False


def test_find_many_combines_base_and_extra_filter() -> None:
    things = collection()
    things.find.return_value = cursor_over([{"_id": ObjectId(), "name": "a"}])
    repo = MongoDocumentRepository(things, base_filter={"secretTour": {"$ne": True}})

    found = repo.find_many({"difficulty": "easy"}, extra_filter={"tour": "t1"})

    criteria = things.find.call_args.args[0]
    assert criteria == {
        "$and": [{"secretTour": {"$ne": True}, "tour": "t1"}, {"difficulty": "easy"}]
    }
    assert found[0]["name"] == "a"


def test_user_reads_never_select_private_fields() -> None:
    users = collection("users")
    users.find.return_value = cursor_over([])
    repo = MongoUserRepository(users)

    repo.find_many({"fields": "name,password"})
    repo.find_many({})

    inclusion = users.find.call_args_list[0].args[1]
    exclusion = users.find.call_args_list[1].args[1]
    assert inclusion == {"name": 1}
    assert exclusion["password"] == 0
    assert exclusion["passwordResetToken"] == 0


def test_user_reads_skip_inactive_accounts() -> None:
    users = collection("users")
    users.find_one.return_value = None

    assert MongoUserRepository(users).find_by_email("Alice@Example.com") is None

    criteria, projection = users.find_one.call_args.args
    assert criteria == {"email": "alice@example.com", "active": {"$ne": False}}
    assert projection == {"password": 0}


def test_user_add_maps_duplicate_email() -> None:
    users = collection("users")
    users.insert_one.side_effect = duplicate(email="alice@example.com")

    with pytest.raises(UserAlreadyExistsError):
        MongoUserRepository(users).add(User(id="", name="Alice", email="alice@example.com"))


def test_user_entity_round_trip() -> None:
    users = collection("users")
    oid = ObjectId()
    users.find_one.return_value = {
        "_id": oid,
        "name": "Alice",
        "email": "alice@example.com",
        "role": "lead-guide",
        "password": "hash",
    }

    user = MongoUserRepository(users).find_by_id(str(oid), with_password=True)

    assert user is not None
    assert user.id == str(oid)
    assert user.role.value == "lead-guide"
    assert user.password_hash == "hash"
    assert user.photo == "default.jpg"


@pytest.mark.parametrize(
    ("name", "slug"),
    [("The Forest Hiker", "the-forest-hiker"), ("  Été à Paris!  ", "ete-a-paris")],
)
def test_slugify(name: str, slug: str) -> None:
    assert slugify(name) == slug


def test_new_tour_gets_slug_and_defaults() -> None:
    tours = collection("tours")
    repo = MongoTourRepository(tours, users=collection("users"), reviews=collection("reviews"))

    created = repo.create({"name": "The Sea Explorer", "duration": 7, "guides": ["bad-id"]})

    inserted = tours.insert_one.call_args.args[0]
    assert inserted["slug"] == "the-sea-explorer"
    assert inserted["ratingsAverage"] == 4.5
    assert inserted["secretTour"] is False
    assert inserted["guides"] == []
    assert created["durationWeeks"] == 1.0


def test_tour_reads_hide_secret_tours() -> None:
    tours = collection("tours")
    tours.find_one.return_value = None
    repo = MongoTourRepository(tours, users=collection("users"), reviews=collection("reviews"))

    assert repo.find_by_slug("secret") is None
    assert tours.find_one.call_args.args[0] == {"slug": "secret", "secretTour": {"$ne": True}}


@pytest.mark.parametrize(("unit", "radius"), [("mi", 250 / 3963.2), ("km", 250 / 6378.1)])
def test_within_uses_earth_radius_of_unit(unit: str, radius: float) -> None:
    tours = collection("tours")
    tours.find.return_value = []
    repo = MongoTourRepository(tours, users=collection("users"), reviews=collection("reviews"))

    repo.within(250, 34.1, -118.1, unit)

    criteria = tours.find.call_args.args[0]
    assert criteria["startLocation"]["$geoWithin"]["$centerSphere"] == [[-118.1, 34.1], radius]


def test_distances_converts_meters() -> None:
    tours = collection("tours")
    tours.aggregate.return_value = []
    repo = MongoTourRepository(tours, users=collection("users"), reviews=collection("reviews"))

    repo.distances(34.1, -118.1, "km")

    geo_near = tours.aggregate.call_args.args[0][0]["$geoNear"]
    assert geo_near["near"]["coordinates"] == [-118.1, 34.1]
    assert geo_near["distanceMultiplier"] == 0.001


def _review_repo(reviews: MagicMock, tours: MagicMock) -> MongoReviewRepository:
    tour_repo = MongoTourRepository(tours, users=collection("users"), reviews=reviews)
    return MongoReviewRepository(reviews, tours=tour_repo, users=collection("users"))


def test_review_write_recalculates_tour_ratings() -> None:
    reviews, tours = collection("reviews"), collection("tours")
    tour_id = ObjectId()
    reviews.aggregate.return_value = [{"_id": tour_id, "nRating": 3, "avgRating": 4.666}]

    _review_repo(reviews, tours).create({"review": "ok", "rating": 5, "tour": str(tour_id)})

    tours.update_one.assert_called_once_with(
        {"_id": tour_id}, {"$set": {"ratingsQuantity": 3, "ratingsAverage": 4.7}}
    )


def test_last_review_removed_resets_ratings() -> None:
    reviews, tours = collection("reviews"), collection("tours")
    tour_id, review_id = ObjectId(), ObjectId()
    reviews.find_one_and_delete.return_value = {"_id": review_id, "tour": tour_id}
    reviews.aggregate.return_value = []

    assert _review_repo(reviews, tours).delete(str(review_id)) is True

    tours.update_one.assert_called_once_with(
        {"_id": tour_id}, {"$set": {"ratingsQuantity": 0, "ratingsAverage": 4.5}}
    )


def test_review_update_cannot_move_review() -> None:
    reviews, tours = collection("reviews"), collection("tours")
    review_id = ObjectId()
    reviews.find_one_and_update.return_value = None

    _review_repo(reviews, tours).update(
        str(review_id), {"rating": 2, "tour": str(ObjectId()), "user": "x"}
    )

    update = reviews.find_one_and_update.call_args.args[1]
    assert update["$set"] == {"rating": 2}


def test_booking_defaults_to_paid_only_on_create() -> None:
    bookings = collection("bookings")
    bookings.find_one_and_update.return_value = None
    repo = MongoBookingRepository(bookings, users=collection("users"), tours=collection("tours"))
    tour_id = ObjectId()

    repo.create({"tour": str(tour_id), "user": str(ObjectId()), "price": 497})
    repo.update(str(ObjectId()), {"price": 397})

    inserted = bookings.insert_one.call_args.args[0]
    assert inserted["paid"] is True
    assert inserted["tour"] == tour_id
    assert bookings.find_one_and_update.call_args.args[1]["$set"] == {"price": 397}
