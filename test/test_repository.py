import threading
import types
import typing as t
from unittest import TestCase

from active_repository.base import Repository
from active_repository.errors import ArgumentError, DuplicateIdError, QueryError, RecordNotFoundError
from active_repository.persistence.registry import registry


class Person(Repository):
    name: str = ""
    age: int = 0


class Tagged(Repository):
    name: str = ""
    tags: t.List[str] = []


class Account(Repository):
    email: str = ""

    def validate_record(self):
        return [] if "@" in self.email else ["email: is invalid"]


class TestRepository(TestCase):
    def setUp(self):
        registry.reset()

    def test_create(self):
        peter = Person.create(name="Peter")
        self.assertIsInstance(peter, Person)
        self.assertEqual(1, peter.id)
        self.assertIsNotNone(peter.created_at)
        self.assertEqual([peter], list(Person.where(name="Peter")))
        self.assertEqual(2, Person.create(name="Paul").id)

    def test_create_ignores_taken_ids(self):
        peter = Person.create(name="Peter")
        paul = Person.create(id=peter.id, name="Paul")
        self.assertEqual(2, paul.id)
        self.assertEqual("Peter", Person.find(1).name)
        # An id that isn't taken is kept.
        self.assertEqual(10, Person.create(id=10, name="Mary").id)

    def test_create_invalid(self):
        self.assertIsNone(Account.create(email="nobody"))
        self.assertIsNone(Person.create(name="Peter", age="old"))
        self.assertEqual(0, Account.count())
        self.assertEqual(0, Person.count())
        self.assertIsNotNone(Account.create(email="ann@example.com"))

    def test_returned_records_are_copies(self):
        peter = Person.create(name="Peter")
        peter.name = "Pierre"
        self.assertEqual("Peter", Person.find(peter.id).name)
        people = Person.all()
        people[0].age = 99
        self.assertEqual(0, Person.first().age)
        # Mutable values are copied too.
        tagged = Tagged.create(name="a", tags=["x"])
        tagged.tags.append("y")
        Tagged.find(tagged.id).tags.append("z")
        next(Tagged.where(name="a")).tags.clear()
        self.assertEqual(["x"], Tagged.find(tagged.id).tags)

    def test_reads(self):
        self.assertIsNone(Person.first())
        self.assertIsNone(Person.last())
        self.assertEqual([], Person.all())
        peter, paul = Person.create(name="Peter"), Person.create(name="Paul")
        self.assertEqual([peter, paul], Person.all())
        self.assertEqual(peter, Person.first())
        self.assertEqual(paul, Person.last())
        self.assertEqual(2, Person.count())
        self.assertTrue(Person.exists(peter.id))
        self.assertTrue(Person.exists(str(peter.id)))
        self.assertFalse(Person.exists(3))
        self.assertEqual(paul, Person.find(paul.id))
        self.assertIsNone(Person.find_by_id(3))
        with self.assertRaises(RecordNotFoundError):
            Person.find(3)

    def test_where(self):
        peter = Person.create(name="Peter", age=30)
        paul = Person.create(name="Paul", age=30)
        self.assertEqual([peter, paul], list(Person.where({"age": 30})))
        self.assertEqual([paul], list(Person.where(age=30, name="Paul")))
        self.assertEqual([peter], list(Person.where("name = 'Peter'")))
        self.assertEqual([paul], list(Person.where("name = ? AND age = ?", "Paul", 30)))
        self.assertEqual([peter], list(Person.where(id=str(peter.id))))
        self.assertIsInstance(Person.where(age=30), types.GeneratorType)
        with self.assertRaises(ArgumentError):
            Person.where()
        with self.assertRaises(ArgumentError):
            Person.where({"age": 30}, name="Paul")
        with self.assertRaises(QueryError):
            Person.where("age >= 30")

    def test_find_by(self):
        peter = Person.create(name="Peter", age=30)
        Person.create(name="Paul", age=30)
        self.assertEqual(peter, Person.find_by(age=30))
        self.assertIsNone(Person.find_by(name="Mary"))
        self.assertEqual(2, len(list(Person.find_all_by(age=30))))
        with self.assertRaises(ArgumentError):
            Person.find_by(nickname="Pete")
        self.assertEqual(["id", "created_at", "updated_at", "name", "age"], Person.serialized_attributes())

    def test_find_or_create(self):
        peter = Person.find_or_create(name="Peter", age=30)
        self.assertEqual(1, Person.count())
        self.assertEqual(peter, Person.find_or_create({"name": "Peter"}, age=30))
        self.assertEqual(1, Person.count())
        Person.find_or_create(name="Peter", age=31)
        self.assertEqual(2, Person.count())

    def test_delete_all(self):
        Person.create(name="Peter")
        Person.create(name="Paul")
        Person.delete_all()
        self.assertEqual([], Person.all())
        self.assertEqual(1, Person.create(name="Mary").id)

    def test_save_new_record(self):
        mary = Person(name="Mary")
        self.assertTrue(mary.save())
        self.assertEqual(1, mary.id)
        self.assertEqual(mary, Person.find(1))
        # Saving the stored instance again changes nothing.
        self.assertTrue(mary.save())
        self.assertEqual(1, Person.count())

    def test_save_copy(self):
        peter = Person.create(name="Peter")
        paul = Person.create(name="Paul")
        copy = Person.find(peter.id)
        copy.age = 41
        self.assertTrue(copy.save())
        self.assertEqual(41, Person.find(peter.id).age)
        self.assertEqual(2, Person.count())
        # Updated records move to the end.
        self.assertEqual([paul, peter], Person.all())
        self.assertEqual(Person.find(peter.id).updated_at, copy.updated_at)

    def test_save_copy_with_mutable_values(self):
        tagged = Tagged.create(name="a", tags=["x"])
        copy = Tagged.find(tagged.id)
        copy.tags.append("y")
        self.assertTrue(copy.save())
        self.assertEqual(["x", "y"], Tagged.find(tagged.id).tags)
        # The saved copy and the stored record don't share the list afterwards.
        copy.tags.append("z")
        self.assertEqual(["x", "y"], Tagged.find(tagged.id).tags)

    def test_save_invalid_copy(self):
        account = Account.create(email="ann@example.com")
        account.email = "ann"
        self.assertTrue(account.save())
        self.assertEqual("ann@example.com", Account.find(account.id).email)
        self.assertFalse(account.persist())

    def test_forced_save_of_a_different_instance(self):
        peter = Person.create(name="Peter")
        with self.assertRaises(DuplicateIdError):
            Person(id=peter.id, name="Impostor").save(force=True)
        self.assertEqual("Peter", Person.find(peter.id).name)

    def test_save_with_unknown_id(self):
        self.assertTrue(Person(id=7, name="Seven").save())
        self.assertEqual("Seven", Person.find(7).name)

    def test_update_attribute(self):
        peter = Person.create(name="Peter")
        paul = Person.create(name="Paul")
        created_at = peter.created_at
        self.assertTrue(peter.update_attribute("age", 30))
        self.assertEqual(30, Person.find(peter.id).age)
        self.assertEqual([paul, peter], Person.all())
        # Updates keep the record equal to what it was.
        self.assertEqual(created_at, peter.created_at)
        self.assertEqual(peter, Person.find(peter.id))

    def test_update_attribute_invalid(self):
        account = Account.create(email="ann@example.com")
        self.assertFalse(account.update_attribute("email", "ann"))
        self.assertEqual("ann@example.com", Account.find(account.id).email)

    def test_update_attributes(self):
        peter = Person.create(name="Peter")
        self.assertTrue(peter.update_attributes({"id": 99, "name": "Pete", "age": 31}))
        self.assertEqual(1, peter.id)
        stored = Person.find(1)
        self.assertEqual(("Pete", 31), (stored.name, stored.age))
        self.assertFalse(Person.exists(99))

    def test_reload(self):
        peter = Person.create(name="Peter")
        copy = Person.find(peter.id)
        peter.update_attribute("age", 30)
        self.assertEqual(0, copy.age)
        self.assertEqual(30, copy.reload().age)
        # Nothing is persisted under this id, so nothing changes.
        stranger = Person(id=42, name="Stranger")
        self.assertEqual("Stranger", stranger.reload().name)
        self.assertEqual("Nobody", Person(name="Nobody").reload().name)

    def test_unique_ids(self):
        people = [Person.create(name=f"person {i}") for i in range(20)]
        Person(name="saved").save()
        ids = [person.id for person in Person.all()]
        self.assertEqual(len(people) + 1, len(set(ids)))

    def test_concurrent_creates(self):
        def create_some(prefix):
            for i in range(25):
                Person.create(name=f"{prefix} {i}")

        threads = [threading.Thread(target=create_some, args=(f"thread {n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        ids = [person.id for person in Person.all()]
        self.assertEqual(100, len(ids))
        self.assertEqual(100, len(set(ids)))
