from datetime import datetime, timezone
from unittest import TestCase

from active_repository.types.record import Record, normalize_key


class Planet(Record):
    name: str = ""
    moons: int = 0

    def validate_record(self):
        return [] if self.name else ["name: can't be blank"]


class Moon(Record):
    name: str = ""


class TestRecord(TestCase):
    def setUp(self):
        self.created_at = datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_equality(self):
        earth = Planet(id=3, name="Earth", created_at=self.created_at)
        # Only the type, the id, and the creation time matter.
        self.assertEqual(earth, Planet(id=3, name="Terra", moons=1, created_at=self.created_at))
        self.assertNotEqual(earth, Planet(id=4, name="Earth", created_at=self.created_at))
        self.assertNotEqual(earth, Planet(id=3, name="Earth", created_at=datetime.now(timezone.utc)))
        self.assertNotEqual(earth, Moon(id=3, name="Earth", created_at=self.created_at))
        self.assertNotEqual(earth, {"id": 3})
        # Records without an id are never equal, not even to themselves.
        unsaved = Planet(name="Pluto")
        self.assertNotEqual(unsaved, unsaved)

    def test_attributes(self):
        mars = Planet(id=4, name="Mars", moons=2)
        self.assertEqual(
            {"id": 4, "created_at": None, "updated_at": None, "name": "Mars", "moons": 2}, mars.attributes
        )
        self.assertEqual(["id", "created_at", "updated_at", "name", "moons"], Planet.field_names())
        mars.attributes["name"] = "Ares"  # a copy
        self.assertEqual("Mars", mars.name)

    def test_assign_attributes(self):
        mars = Planet(name="Mars")
        mars.assign_attributes({"_id": "abc", "moons": 2, "color": "red"})
        self.assertEqual("abc", mars.id)
        self.assertEqual(2, mars.moons)
        self.assertFalse(hasattr(mars, "color"))

    def test_normalize_key(self):
        self.assertEqual("id", normalize_key("_id"))
        self.assertEqual("id", normalize_key("id"))
        self.assertEqual("name", normalize_key("name"))

    def test_validation(self):
        venus = Planet(name="Venus")
        self.assertTrue(venus.is_valid())
        self.assertEqual([], venus.errors)
        venus.name = ""
        self.assertFalse(venus.is_valid())
        self.assertEqual(["name: can't be blank"], venus.errors)
        # Field declarations are checked against the current values too.
        venus.name = "Venus"
        venus.moons = "none"
        self.assertFalse(venus.is_valid())
        self.assertEqual(1, len(venus.errors))
        self.assertTrue(venus.errors[0].startswith("moons: "))

    def test_validation_sets_timestamps(self):
        jupiter = Planet(name="Jupiter")
        jupiter.is_valid()
        created_at, updated_at = jupiter.created_at, jupiter.updated_at
        self.assertIsNotNone(created_at)
        self.assertEqual(created_at, updated_at)
        jupiter.is_valid()
        self.assertEqual(created_at, jupiter.created_at)
        self.assertGreaterEqual(jupiter.updated_at, updated_at)
